# src/taskdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging and settings, then either:
- `taskdeck`        runs the interactive console against the configured backend,
- `taskdeck serve`  serves the task HTTP API with uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from ..cli.bootstrap import create_initial_state, create_repository, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="taskdeck", description="Task manager console and API server.")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("console", help="Interactive console (default).")
    serve = sub.add_parser("serve", help="Serve the task HTTP API.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser.parse_args(argv)


def serve(settings, *, host: str | None = None, port: int | None = None) -> None:
    import uvicorn

    from ..api.server import create_app

    app = create_app(create_repository(settings), title=settings.app_name)
    host = host or settings.api_host
    port = port or settings.api_port
    logger.info("Serving %s API on http://%s:%s", settings.app_name, host, port)
    # log_config=None keeps uvicorn on our logging setup.
    uvicorn.run(app, host=host, port=port, log_config=None)


async def _run_console(settings) -> None:
    state = create_initial_state(settings=settings)
    try:
        await run_console_loop(state)
    finally:
        await shutdown_state(state)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    if args.command == "serve":
        serve(settings, host=args.host, port=args.port)
    else:
        try:
            asyncio.run(_run_console(settings))
        except KeyboardInterrupt:
            logger.info("Interrupted.")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
