import asyncio
import logging
import ssl
import sys

from transfer_harness.constants import MODE_SERVE, MODE_UPLOAD
from transfer_harness.harness import DataManager, Harness
from transfer_harness.logsink import LOG_FORMAT, LogSink
from transfer_harness.main import (
    print_tsv_results,
    run_download_scenario,
    run_upload_scenario,
)
from transfer_harness.parsing import parse_arguments
from transfer_harness.utils import format_size


async def cli(argv=None):
    """Main entry point for the harness tool."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO, format=LOG_FORMAT
    )

    if args.mode == MODE_SERVE:
        await serve(args)
        return

    with LogSink() as sink:
        if args.logfile:
            sink.open(args.logfile)
        scenario_results = await run_scenarios(args)

    print_tsv_results(scenario_results)
    if any(r.failures for r in scenario_results):
        sys.exit(1)


async def serve(args):
    """Serve the handlers until interrupted."""
    ssl_context = None
    if args.certfile:
        ssl_context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        ssl_context.load_cert_chain(args.certfile, args.keyfile)

    data = DataManager()
    data.set_data(args.data_size_bytes)

    harness = Harness(host=args.host, ssl_context=ssl_context, data=data)
    harness.reset(log_file=args.logfile)
    task = await harness.start()

    print(f"Serving on {harness.base_url}")
    print(f"/data: {format_size(args.data_size_bytes)}, md5 {data.get_md5()}")
    try:
        await asyncio.wait({task})
    finally:
        await harness.close()
        print(f"\nVerified uploads: {harness.tracker.read()}")


async def run_scenarios(args):
    """Run the upload or download scenario for every --parallel value."""
    scenario_results = []
    run = run_upload_scenario if args.mode == MODE_UPLOAD else run_download_scenario

    for parallel in args.parallel:
        for repeat in range(args.repeats):
            print(
                f"\nScenario {args.mode}: parallel {parallel}, repeat {repeat + 1}/{args.repeats}"
            )
            result = await run(
                args.url,
                args.length,
                args.num,
                parallel,
                verify_tls=not args.insecure,
            )
            for failure in result.failures:
                print(failure)
            scenario_results.append(result)

    return scenario_results
