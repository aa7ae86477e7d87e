import asyncio
import os
import time

import pytest

from transfer_harness.constants import DATA_LONG_LEN, HELLO_TEXT
from transfer_harness.errors import SetupError, VerificationError
from transfer_harness.handlers import build_handlers
from transfer_harness.harness import DataManager
from transfer_harness.prng import generate, verify
from transfer_harness.tracker import UploadTracker


def test_handler_table():
    table = build_handlers(UploadTracker(), DataManager())
    assert {path: route.method for path, route in table.items()} == {
        "/hello": "GET",
        "/data": "GET",
        "/prdata": "GET",
        "/echo": "POST",
        "/uploadhandler": "POST",
        "/uploadtest": "GET",
        "/downloadtest": "GET",
    }
    with pytest.raises(TypeError):
        table["/other"] = table["/hello"]


@pytest.mark.asyncio
async def test_hello(client):
    response = await client.get("/hello")
    assert response.status_code == 200
    assert response.text == HELLO_TEXT


@pytest.mark.asyncio
async def test_data(harness, client):
    response = await client.get("/data")
    assert response.status_code == 200
    assert response.content == harness.data.get_data()


@pytest.mark.asyncio
async def test_data_unset(harness, client):
    harness.data.clear()
    response = await client.get("/data")
    assert response.status_code == 400
    assert isinstance(harness.failures[0], SetupError)


@pytest.mark.asyncio
async def test_prdata(client):
    response = await client.get("/prdata", params={"len": 16})
    assert response.status_code == 200
    assert response.content == generate(16)
    assert response.content[0] == (1 * 48271) % 2147483647 % 256


@pytest.mark.asyncio
async def test_prdata_large_is_streamed(client):
    length = 3 * 1024 * 1024 + 5
    async with client.stream("GET", "/prdata", params={"len": length}) as response:
        assert response.headers["content-length"] == str(length)
        received = verify([chunk async for chunk in response.aiter_bytes()], length)
    assert received == length


@pytest.mark.asyncio
async def test_hello_not_blocked_by_large_prdata(client):
    length = 8 * 1024 * 1024
    download = asyncio.create_task(client.get("/prdata", params={"len": length}))
    await asyncio.sleep(0.2)

    start = time.monotonic()
    response = await client.get("/hello")
    latency = time.monotonic() - start

    assert response.text == HELLO_TEXT
    assert latency < 1.0
    downloaded = await download
    assert len(downloaded.content) == length
    assert downloaded.content[:1024] == generate(1024)


@pytest.mark.asyncio
async def test_prdata_empty(client):
    response = await client.get("/prdata", params={"len": 0})
    assert response.status_code == 200
    assert response.content == b""


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [{}, {"len": "abc"}, {"len": "-1"}, {"len": "1.5"}])
async def test_prdata_bad_length(harness, client, query):
    response = await client.get("/prdata", params=query)
    assert response.status_code == 400
    assert len(harness.failures) == 1
    assert isinstance(harness.failures[0], SetupError)


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [0, 1, 1000])
async def test_echo(client, length):
    body = os.urandom(length)
    response = await client.post("/echo", content=body)
    assert response.status_code == 200
    assert response.content == body


@pytest.mark.asyncio
async def test_echo_large(client):
    body = os.urandom(DATA_LONG_LEN)
    response = await client.post("/echo", content=body)
    assert response.status_code == 200
    assert response.content == body


@pytest.mark.asyncio
async def test_echo_rejects_get(client):
    response = await client.get("/echo")
    assert response.status_code == 405


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [0, 1, 16, 200 * 1024])
async def test_upload(harness, client, length):
    response = await client.post(
        "/uploadhandler", params={"len": length}, content=generate(length)
    )
    assert response.status_code == 200
    assert harness.tracker.read() == 1
    harness.assert_no_failures()


@pytest.mark.asyncio
async def test_upload_mismatch(harness, client):
    body = bytearray(generate(1024))
    body[512] ^= 0x01
    response = await client.post(
        "/uploadhandler", params={"len": 1024}, content=bytes(body)
    )
    assert response.status_code == 500
    assert "offset 512" in response.text
    assert harness.tracker.read() == 0
    with pytest.raises(VerificationError):
        harness.assert_no_failures()


@pytest.mark.asyncio
async def test_upload_wrong_length(harness, client):
    response = await client.post(
        "/uploadhandler", params={"len": 1024}, content=generate(1000)
    )
    assert response.status_code == 500
    assert harness.tracker.read() == 0


@pytest.mark.asyncio
async def test_upload_missing_length(harness, client):
    response = await client.post("/uploadhandler", content=generate(10))
    assert response.status_code == 400
    assert harness.tracker.read() == 0


@pytest.mark.asyncio
async def test_upload_page(client):
    response = await client.get("/uploadtest", params={"len": 1024, "num": 3})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "new ArrayBuffer(1024)" in response.text
    assert "i < 3" in response.text
    assert '"/uploadhandler?len=" + 1024' in response.text


@pytest.mark.asyncio
async def test_download_page(client):
    response = await client.get("/downloadtest", params={"len": 1024, "num": 3})
    assert response.status_code == 200
    assert '"/prdata?len=" + 1024' in response.text
    assert "nOK === 3" in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/uploadtest", "/downloadtest"])
async def test_page_requires_num(harness, client, path):
    response = await client.get(path, params={"len": 1024})
    assert response.status_code == 400
    assert isinstance(harness.failures[0], SetupError)
