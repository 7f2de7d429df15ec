"""Entry point for the dashboard server."""

import asyncio
import contextlib
import signal
import sys

import structlog
import uvicorn

from statusboard.app import create_app
from statusboard.config import Settings
from statusboard.lifecycle import GracefulShutdown
from statusboard.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings) -> bool:
    """Run uvicorn with signal-driven graceful shutdown.

    Args:
        settings: Server configuration.

    Returns:
        True if the server started, False if startup was aborted.
    """
    app = create_app(settings)
    shutdown = GracefulShutdown(timeout=settings.shutdown_timeout)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        lifespan="on",
        timeout_graceful_shutdown=int(shutdown.timeout),
    )
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    async def shutdown_server() -> None:
        """Wait for shutdown signal and stop server."""
        await shutdown.wait_for_trigger()
        server.should_exit = True

    stopper = asyncio.create_task(shutdown_server())
    try:
        await server.serve()
    finally:
        stopper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stopper

    return server.started


def main() -> None:
    """Entry point for python -m statusboard."""
    settings = Settings()
    configure_logging(debug=settings.debug)

    started = False
    with contextlib.suppress(KeyboardInterrupt):
        started = asyncio.run(serve(settings))

    if not started:
        logger.error("statusboard_startup_aborted")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
