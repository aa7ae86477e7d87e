import asyncio
import logging
import time

import httpx

from transfer_harness.errors import VerificationError
from transfer_harness.prng import SequenceVerifier
from transfer_harness.structs import RequestResult
from transfer_harness.utils import SpeedMonitor

logger = logging.getLogger(__name__)


class AsyncDownloader:
    """Issue concurrent downloads of /prdata and verify every byte."""

    def __init__(
        self,
        max_concurrent: int,
        speed_monitor: SpeedMonitor,
        verify_tls: bool = True,
    ):
        """
        Initialize with a speed monitor.

        Args:
            max_concurrent: Maximum number of downloads in flight, guarded by a Semaphore
            speed_monitor: SpeedMonitor instance
            verify_tls: Verify the server certificate for https URLs
        """
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.speed_monitor = speed_monitor
        self.verify_tls = verify_tls

    async def download_one(
        self, client: httpx.AsyncClient, length: int, request_number: int
    ) -> RequestResult:
        """
        Stream /prdata?len=length and check it against the local sequence.

        Args:
            client: httpx.AsyncClient bound to the harness base URL
            length: Expected payload length
            request_number: Index for tracking

        Returns:
            RequestResult for this download
        """
        async with self.semaphore:
            start_time = time.time()
            verifier = SequenceVerifier(length)

            try:
                async with client.stream(
                    "GET", "/prdata", params={"len": length}
                ) as response:
                    response.raise_for_status()

                    async for chunk in response.aiter_bytes(chunk_size=65536):
                        verifier.feed(chunk)
                        await self.speed_monitor.update(len(chunk))

                verifier.finish()

            except (httpx.HTTPError, VerificationError) as exc:
                error_msg = f"Error downloading request {request_number}: {exc}"
                logger.error(error_msg)
                return RequestResult(
                    request_number=request_number,
                    bytes_transferred=verifier.received,
                    time_taken=time.time() - start_time,
                    verified=False,
                    error=error_msg,
                )

            end_time = time.time()
            await self.speed_monitor.request_completed()

            return RequestResult(
                request_number=request_number,
                bytes_transferred=verifier.received,
                time_taken=end_time - start_time,
                verified=True,
            )

    async def download_all(
        self, base_url: str, length: int, num: int
    ) -> list[RequestResult]:
        """
        Download and verify `num` copies of generate(length) concurrently.

        Args:
            base_url: Harness base URL
            length: Payload length per download
            num: Number of downloads

        Returns:
            List of download results
        """
        client_kwargs = {
            "base_url": base_url,
            "timeout": httpx.Timeout(None),
            "verify": self.verify_tls,
        }

        async with httpx.AsyncClient(**client_kwargs) as client:
            tasks = [self.download_one(client, length, i) for i in range(num)]
            return await asyncio.gather(*tasks)
