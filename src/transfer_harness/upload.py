import asyncio
import logging
import time

import httpx

from transfer_harness.prng import generate
from transfer_harness.structs import RequestResult
from transfer_harness.utils import SpeedMonitor

logger = logging.getLogger(__name__)


class AsyncUploader:
    """Issue concurrent verified uploads using asyncio and httpx."""

    def __init__(
        self,
        *,
        max_concurrent: int,
        speed_monitor: SpeedMonitor,
        verify_tls: bool = True,
    ):
        """
        Initialize with a speed monitor.

        Args:
            max_concurrent: Maximum number of uploads in flight, guarded by a Semaphore
            speed_monitor: SpeedMonitor instance
            verify_tls: Verify the server certificate for https URLs
        """
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.speed_monitor = speed_monitor
        self.verify_tls = verify_tls

    async def upload_one(
        self, client: httpx.AsyncClient, content: bytes, request_number: int
    ) -> RequestResult:
        """
        POST the deterministic sequence in `content` to /uploadhandler.

        The server verifies the body; a non-2xx status is a failed upload.

        Args:
            client: httpx.AsyncClient bound to the harness base URL
            content: generate(length) for the scenario length
            request_number: Index for tracking

        Returns:
            RequestResult for this upload
        """
        async with self.semaphore:
            start_time = time.time()

            try:
                response = await client.post(
                    "/uploadhandler", params={"len": len(content)}, content=content
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                error_msg = f"Error uploading request {request_number}: {exc}"
                if isinstance(exc, httpx.HTTPStatusError):
                    error_msg += f" ({exc.response.text.strip()})"
                logger.error(error_msg)
                return RequestResult(
                    request_number=request_number,
                    bytes_transferred=0,
                    time_taken=time.time() - start_time,
                    verified=False,
                    error=error_msg,
                )

            end_time = time.time()
            await self.speed_monitor.update(len(content))
            await self.speed_monitor.request_completed()

            return RequestResult(
                request_number=request_number,
                bytes_transferred=len(content),
                time_taken=end_time - start_time,
                verified=True,
            )

    async def upload_all(
        self, base_url: str, length: int, num: int
    ) -> list[RequestResult]:
        """
        Upload `num` copies of generate(length) concurrently.

        Args:
            base_url: Harness base URL
            length: Payload length per upload
            num: Number of uploads

        Returns:
            List of upload results
        """
        client_kwargs = {
            "base_url": base_url,
            "timeout": httpx.Timeout(None),
            "verify": self.verify_tls,
        }

        content = generate(length)

        async with httpx.AsyncClient(**client_kwargs) as client:
            tasks = [self.upload_one(client, content, i) for i in range(num)]
            return await asyncio.gather(*tasks)
