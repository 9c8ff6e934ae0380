"""Command line entry point."""

import asyncio
import logging
import os
import sys

from .args import LINE_ENDINGS, parse_args

logger = logging.getLogger(__name__)


def serve(config_path: str, host: str | None, port: int | None, verbose: bool) -> int:
    import uvicorn

    from monitorhub.app import CONFIG_PATH_ENV
    from monitorhub.config import load_config
    from monitorhub.logging_setup import LOG_LEVEL_ENV, setup_logging

    from .display import display_startup_screen

    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "INFO")
    setup_logging(level)

    try:
        config = load_config(config_path)
    except ValueError as e:
        logger.error("Invalid config path=%s: %s", config_path, e)
        return 2

    host = host or config.server.host
    port = port or config.server.port
    config.server.host, config.server.port = host, port

    display_startup_screen(config, config_path)

    os.environ[CONFIG_PATH_ENV] = config_path
    os.environ[LOG_LEVEL_ENV] = level
    uvicorn.run(
        "monitorhub.asgi:create_app_from_env",
        factory=True,
        host=host,
        port=port,
        log_level=level.lower(),
        log_config=None,
    )
    return 0


def console(url: str, timestamp: bool, line_ending: str, max_characters: int) -> int:
    from monitorhub.client import run_console
    from monitorhub.logging_setup import setup_logging

    setup_logging("WARNING")
    try:
        return asyncio.run(
            run_console(
                url,
                show_timestamp=timestamp,
                line_ending=LINE_ENDINGS[line_ending],
                max_characters=max_characters,
            )
        )
    except KeyboardInterrupt:
        return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "console":
        return console(args.url, args.timestamp, args.line_ending, args.max_characters)
    return serve(args.config, args.host, args.port, args.verbose)


if __name__ == "__main__":
    sys.exit(main())
