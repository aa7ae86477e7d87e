import asyncio
import threading
import time


class UploadTracker:
    """Count fully verified uploads across concurrent handler invocations."""

    def __init__(self):
        self._lock = threading.Lock()
        self._count = 0

    def increment(self):
        with self._lock:
            self._count += 1

    def read(self) -> int:
        with self._lock:
            return self._count

    def reset(self):
        with self._lock:
            self._count = 0

    async def wait_for(
        self, expected: int, timeout: float, poll_interval: float = 0.01
    ) -> int:
        """
        Poll until at least `expected` uploads have completed.

        Args:
            expected: Number of uploads to wait for
            timeout: Maximum time to wait in seconds
            poll_interval: Delay between polls in seconds

        Returns:
            The count once it reached `expected`

        Raises:
            asyncio.TimeoutError: If the count did not reach `expected` in time
        """
        deadline = time.monotonic() + timeout
        while True:
            count = self.read()
            if count >= expected:
                return count
            if time.monotonic() >= deadline:
                raise asyncio.TimeoutError(
                    f"Only {count} of {expected} uploads completed within {timeout}s"
                )
            await asyncio.sleep(poll_interval)
