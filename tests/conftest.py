import httpx
import pytest_asyncio

from transfer_harness.harness import DataManager, Harness

SMALL_DATA_LEN = 4096


@pytest_asyncio.fixture
async def harness():
    """Start a harness on an ephemeral port and make sure it closes cleanly."""
    data = DataManager()
    data.set_data(SMALL_DATA_LEN)
    harness = Harness(data=data)
    await harness.start()
    harness.reset()
    yield harness
    await harness.close()


@pytest_asyncio.fixture
async def client(harness):
    """Create an httpx client bound to the running harness."""
    async with httpx.AsyncClient(
        base_url=harness.base_url, timeout=httpx.Timeout(30)
    ) as client:
        yield client
