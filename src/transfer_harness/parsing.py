import argparse
from collections.abc import Mapping

from transfer_harness.constants import (
    DATA_SIZES,
    DEFAULT_HOST,
    DEFAULT_PARALLEL_REQUESTS,
    MODE_DOWNLOAD,
    MODE_SERVE,
    MODE_UPLOAD,
)
from transfer_harness.errors import SetupError
from transfer_harness.utils import parse_size


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Serve and drive deterministic upload/download transfer scenarios."
    )

    # Mode selection
    parser.add_argument(
        "mode",
        choices=[MODE_SERVE, MODE_UPLOAD, MODE_DOWNLOAD],
        help="Operation mode: serve the handlers, or drive an upload or download scenario",
    )

    # Serve mode arguments
    serve_group = parser.add_argument_group("Serve mode arguments")
    serve_group.add_argument(
        "--host",
        type=str,
        default=DEFAULT_HOST,
        help=f"Address to bind (default: {DEFAULT_HOST}); the port is chosen by the OS",
    )
    serve_group.add_argument(
        "--data-size",
        choices=sorted(DATA_SIZES),
        default="short",
        help="Fixed payload served by /data: short (500 KB) or long (50 MB)",
    )
    serve_group.add_argument("--certfile", help="TLS certificate chain (PEM)")
    serve_group.add_argument("--keyfile", help="TLS private key (PEM)")

    # Scenario mode arguments
    scenario_group = parser.add_argument_group("Upload/download mode arguments")
    scenario_group.add_argument(
        "--url", help="Base URL of a running harness, e.g. http://127.0.0.1:8443"
    )
    scenario_group.add_argument(
        "--len",
        dest="length",
        type=parse_size,
        default=parse_size("1MB"),
        help="Payload length per request (e.g., '16', '500KB'). Accepts suffixes KB, MB, GB.",
    )
    scenario_group.add_argument(
        "--num", type=int, default=1, help="Number of requests to issue"
    )
    scenario_group.add_argument(
        "--parallel",
        type=int,
        nargs="+",
        default=[DEFAULT_PARALLEL_REQUESTS],
        help=f"Numbers of requests in flight to try (e.g., '1 5 20'). Default: {DEFAULT_PARALLEL_REQUESTS}",
    )
    scenario_group.add_argument(
        "--repeats", type=int, default=1, help="Number of times to repeat each scenario"
    )
    scenario_group.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify the server's TLS certificate",
    )

    parser.add_argument("--logfile", help="Write debug logs to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")

    args = parser.parse_args(argv)

    # Validate mode-specific arguments
    if args.mode in (MODE_UPLOAD, MODE_DOWNLOAD) and not args.url:
        parser.error(f"{args.mode} mode requires --url")
    if bool(args.certfile) != bool(args.keyfile):
        parser.error("--certfile and --keyfile must be given together")
    if args.num < 0:
        parser.error("--num must be non-negative")
    if any(p <= 0 for p in args.parallel):
        parser.error("--parallel values must be positive")

    args.data_size_bytes = DATA_SIZES[args.data_size]

    return args


def parse_query_int(query: Mapping[str, str], name: str) -> int:
    """
    Read a required non-negative integer query parameter.

    Args:
        query: Request query parameters
        name: Parameter name

    Returns:
        The parsed value

    Raises:
        SetupError: If the parameter is missing, not an integer, or negative
    """
    raw = query.get(name)
    if raw is None:
        raise SetupError(f"Missing required query parameter '{name}'")

    try:
        value = int(raw)
    except ValueError:
        raise SetupError(f"Query parameter '{name}' is not an integer: {raw!r}")

    if value < 0:
        raise SetupError(f"Query parameter '{name}' must be non-negative, got {value}")
    return value
