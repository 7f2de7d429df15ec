"""Composition root wiring subscriptions to watchers."""
import asyncio
import contextlib
from collections.abc import Mapping

import structlog

from statusboard.events.cache import Snapshot
from statusboard.events.types import ServiceType
from statusboard.events.watcher import ChangeCallback, Renderer, Watcher
from statusboard.exceptions import ConfigError, StartupError
from statusboard.services.base import ServiceAdapter
from statusboard.subscribers import Subscriber

logger = structlog.get_logger()


class WatcherRegistry:
    """Builds one watcher per subscription and owns their tasks.

    Attributes:
        subscribers: Subscribers in configuration order.
        watchers: One watcher per subscription, in the same order.
    """

    def __init__(
        self,
        subscribers: list[Subscriber],
        adapters: Mapping[ServiceType, ServiceAdapter],
        renderer: Renderer,
        on_change: ChangeCallback,
    ) -> None:
        """Create watchers for every subscription.

        Args:
            subscribers: Loaded subscriber list.
            adapters: Capability table mapping service types to adapters.
            renderer: Template renderer shared by all watchers.
            on_change: Callback receiving change events.

        Raises:
            ConfigError: If a subscription's service has no adapter.
        """
        self.subscribers = subscribers
        self._adapters = adapters
        self._tasks: list[asyncio.Task[None]] = []
        self.watchers: list[Watcher] = []

        for subscriber in subscribers:
            for subscription in subscriber.subscriptions:
                adapter = adapters.get(subscription.service_type)
                if adapter is None:
                    raise ConfigError(
                        f"No adapter for service {subscription.service_type.value!r}"
                    )
                self.watchers.append(
                    Watcher(subscriber.name, subscription, adapter, renderer, on_change)
                )

    @property
    def service_types(self) -> set[ServiceType]:
        """Service types used by at least one subscription."""
        return {w.subscription.service_type for w in self.watchers}

    @property
    def tasks(self) -> list[asyncio.Task[None]]:
        """Running watcher tasks (empty before ``start``)."""
        return list(self._tasks)

    async def prepare(self) -> None:
        """Run the startup handshake of every adapter in use.

        Raises:
            StartupError: If any handshake fails.
        """
        for service_type in sorted(self.service_types, key=lambda s: s.value):
            adapter = self._adapters[service_type]
            try:
                await adapter.prepare()
            except StartupError:
                logger.error("adapter_prepare_failed", adapter=adapter.name)
                raise
            logger.info("adapter_ready", adapter=adapter.name)

    def start(self) -> None:
        """Start every watcher as an independent asyncio task."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(watcher.run_forever(), name=watcher.name)
            for watcher in self.watchers
        ]
        logger.info("watchers_started", count=len(self._tasks))

    async def stop(self) -> None:
        """Cancel all watcher tasks and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("watchers_stopped", count=len(self._tasks))
        self._tasks = []

    def snapshots(self) -> list[tuple[Subscriber, list[Snapshot]]]:
        """Current snapshot of every subscription, grouped by subscriber."""
        return [
            (subscriber, [s.current_snapshot() for s in subscriber.subscriptions])
            for subscriber in self.subscribers
        ]
