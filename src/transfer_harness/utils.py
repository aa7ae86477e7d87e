import asyncio
import re
import time

from transfer_harness.constants import MODE_DOWNLOAD
from transfer_harness.structs import RequestResult, SummaryStats

SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


class SpeedMonitor:
    """Count transferred bytes and finished requests for one scenario."""

    def __init__(
        self, total_requests: int = 0, update_interval: float = 0.5, quiet: bool = False
    ):
        """
        Args:
            total_requests: Number of requests the scenario issues
            update_interval: Minimum seconds between progress lines
            quiet: Suppress all output
        """
        self.total_requests = total_requests
        self.update_interval = update_interval
        self.quiet = quiet
        self.lock = asyncio.Lock()
        self.start_time = None
        self.last_display = 0.0
        self.total_bytes = 0
        self.completed_requests = 0

    def start(self):
        self.start_time = time.time()

    def elapsed(self) -> float:
        return time.time() - self.start_time

    async def update(self, bytes_transferred: int):
        async with self.lock:
            self.total_bytes += bytes_transferred
            if time.time() - self.last_display >= self.update_interval:
                self.display_progress()

    async def request_completed(self):
        async with self.lock:
            self.completed_requests += 1
            self.display_progress()

    def display_progress(self):
        """Rewrite the progress line in place."""
        if self.quiet:
            return

        self.last_display = time.time()
        elapsed = self.elapsed()
        speed = self.total_bytes / elapsed if elapsed > 0 else 0.0
        line = (
            f"{format_size(self.total_bytes)} at {format_speed(speed)}"
            f" | Requests: {self.completed_requests}/{self.total_requests}"
        )
        print(f"\r{line:<60}", end="", flush=True)

    def summarize(self, results: list[RequestResult]) -> SummaryStats:
        total_bytes = sum(r.bytes_transferred for r in results)
        total_time = self.elapsed()
        average_speed = total_bytes / total_time if total_time > 0 else 0.0

        return SummaryStats(
            total_bytes=total_bytes,
            total_time=total_time,
            average_speed=average_speed,
            average_speed_formatted=format_speed(average_speed),
        )

    def display_final_stats(self, stats: SummaryStats, mode: str = MODE_DOWNLOAD):
        if self.quiet:
            return

        operation = "Download" if mode == MODE_DOWNLOAD else "Upload"
        print(
            f"\n{operation}: {format_size(stats.total_bytes)} in {stats.total_time:.2f} s"
            f" ({stats.average_speed_formatted})"
        )


def _scale(value: float, units: list[str]) -> str:
    for unit in units[:-1]:
        if value < 1024:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} {units[-1]}"


def format_size(size: int) -> str:
    """Format a byte count, e.g. 512000 -> '500.00 KB'."""
    return _scale(size, ["B", "KB", "MB", "GB", "TB"])


def format_speed(speed: float) -> str:
    """Format bytes per second, e.g. 2048 -> '2.00 KB/s'."""
    return _scale(speed, ["B/s", "KB/s", "MB/s", "GB/s"])


def parse_size(size_str: str) -> int:
    """
    Parse a size with an optional KB/MB/GB suffix into bytes.

    Raises:
        ValueError: If the string is not NUMBER[KB|MB|GB]
    """
    match = re.fullmatch(r"(\d+)([KMG]B)?", size_str, re.IGNORECASE)
    if not match:
        raise ValueError(
            f"Invalid size format: {size_str}. Expected format: NUMBER[KB|MB|GB]"
        )

    value, unit = match.groups()
    return int(value) * (SIZE_UNITS[unit.upper()] if unit else 1)
