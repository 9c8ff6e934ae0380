"""Command line argument parsing."""

import argparse

from monitorhub import __version__
from monitorhub.domain import MAX_CHARACTERS

LINE_ENDINGS = {
    "none": "",
    "lf": "\n",
    "cr": "\r",
    "crlf": "\r\n",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monitorhub",
        description="monitorhub - Shared serial monitor sessions over WebSocket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the monitor server (default)")
    serve.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to the config file (default: config.yaml)",
    )
    serve.add_argument("--host", default=None, help="Override server.host from the config")
    serve.add_argument("--port", type=int, default=None, help="Override server.port from the config")
    serve.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logs",
    )

    console = subparsers.add_parser("console", help="Observe a monitor in the terminal")
    console.add_argument("url", help="Monitor WebSocket URL, e.g. ws://127.0.0.1:8765/ws/monitors/<id>")
    console.add_argument(
        "-t",
        "--timestamp",
        action="store_true",
        help="Prefix each line with the time it started arriving",
    )
    console.add_argument(
        "--line-ending",
        choices=sorted(LINE_ENDINGS),
        default="lf",
        help="Appended to each line sent to the device (default: lf)",
    )
    console.add_argument(
        "--max-characters",
        type=int,
        default=MAX_CHARACTERS,
        help=f"Characters of output kept in memory (default: {MAX_CHARACTERS})",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace. ``command`` defaults to ``serve``.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        args = parser.parse_args(["serve"])

    if args.command == "console" and args.max_characters <= 0:
        parser.error("--max-characters must be positive")

    return args
