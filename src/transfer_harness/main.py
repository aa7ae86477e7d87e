#!/usr/bin/env python3
"""
Transfer scenarios

Drive N concurrent uploads or downloads of the deterministic sequence against
a running harness, the same fan-out the /uploadtest and /downloadtest pages
perform in a browser.
"""

from transfer_harness.constants import MODE_DOWNLOAD, MODE_UPLOAD
from transfer_harness.download import AsyncDownloader
from transfer_harness.structs import RequestResult, ScenarioResult
from transfer_harness.upload import AsyncUploader
from transfer_harness.utils import SpeedMonitor, format_size


def collect_results(
    mode: str,
    length: int,
    num: int,
    parallel: int,
    results: list[RequestResult],
    speed_monitor: SpeedMonitor,
) -> ScenarioResult:
    summary_stats = speed_monitor.summarize(results)
    speed_monitor.display_final_stats(summary_stats, mode)

    return ScenarioResult(
        mode=mode,
        length=length,
        num=num,
        parallel=parallel,
        ok=sum(1 for r in results if r.verified),
        failures=[r.error for r in results if r.error],
        total_bytes=summary_stats.total_bytes,
        total_time=summary_stats.total_time,
        average_speed_formatted=summary_stats.average_speed_formatted,
    )


async def run_upload_scenario(
    base_url, length, num, parallel, verify_tls=True, quiet=False
):
    """
    Run a single upload scenario.

    Args:
        base_url: Harness base URL
        length: Payload length per upload
        num: Number of uploads
        parallel: Number of uploads in flight
        verify_tls: Verify the server certificate for https URLs
        quiet: Suppress progress output

    Returns:
        ScenarioResult
    """
    if not quiet:
        print(
            f"\nUploading {num} x {format_size(length)} with {parallel} in flight..."
        )

    speed_monitor = SpeedMonitor(total_requests=num, quiet=quiet)
    speed_monitor.start()

    uploader = AsyncUploader(
        max_concurrent=parallel, speed_monitor=speed_monitor, verify_tls=verify_tls
    )
    results = await uploader.upload_all(base_url, length, num)

    return collect_results(MODE_UPLOAD, length, num, parallel, results, speed_monitor)


async def run_download_scenario(
    base_url, length, num, parallel, verify_tls=True, quiet=False
):
    """
    Run a single download scenario.

    Args:
        base_url: Harness base URL
        length: Payload length per download
        num: Number of downloads
        parallel: Number of downloads in flight
        verify_tls: Verify the server certificate for https URLs
        quiet: Suppress progress output

    Returns:
        ScenarioResult
    """
    if not quiet:
        print(
            f"\nDownloading {num} x {format_size(length)} with {parallel} in flight..."
        )

    speed_monitor = SpeedMonitor(total_requests=num, quiet=quiet)
    speed_monitor.start()

    downloader = AsyncDownloader(
        max_concurrent=parallel, speed_monitor=speed_monitor, verify_tls=verify_tls
    )
    results = await downloader.download_all(base_url, length, num)

    return collect_results(
        MODE_DOWNLOAD, length, num, parallel, results, speed_monitor
    )


def print_tsv_results(scenario_results):
    """
    Print scenario results as a TSV table.

    Args:
        scenario_results: List of ScenarioResult
    """
    sorted_results = sorted(scenario_results, key=lambda r: (r.mode, r.parallel))

    print("\nScenario Results (TSV format):")
    print("Mode\tLength\tRequests\tParallel\tVerified\tTotal Time (s)\tAverage Speed")

    for result in sorted_results:
        print(
            f"{result.mode}\t{format_size(result.length)}\t{result.num}\t{result.parallel}\t{result.ok}/{result.num}\t{result.total_time:.2f}\t{result.average_speed_formatted}"
        )
