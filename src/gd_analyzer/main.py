"""Main entry point for the GD Frame Analyzer service."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from gd_analyzer.api.app import create_app
from gd_analyzer.core.config import get_settings
from gd_analyzer.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def run_server(host: str | None = None, port: int | None = None) -> int:
    """Serve the analyzer API until interrupted.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    host = host or settings.api.host
    port = port or settings.api.port
    logger.info("Starting GD Frame Analyzer on %s:%d", host, port)

    try:
        uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="GD Frame Analyzer - per-frame behaviour metrics over HTTP"
    )
    parser.add_argument("--host", help="Bind address (default from API_HOST)")
    parser.add_argument("--port", type=int, help="Bind port (default from API_PORT)")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    sys.exit(run_server(args.host, args.port))


if __name__ == "__main__":
    main()
