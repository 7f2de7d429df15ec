"""Shutdown signal coordinator for the server process."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Signals shutdown from OS signal handlers to the server loop."""

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize shutdown coordinator.

        Args:
            timeout: Seconds the server gets to close connections.
        """
        self._event = asyncio.Event()
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        """Seconds allowed for a graceful stop."""
        return self._timeout

    def trigger(self) -> None:
        """Signal all waiting tasks to begin shutdown.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._event.is_set():
            return
        logger.info("shutdown_triggered")
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Block until trigger() is called."""
        await self._event.wait()
