"""Self-rescheduling poll loop for a single subscription."""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from statusboard.events.types import CanonicalUpdate, ChangeEvent
from statusboard.exceptions import RenderError, TransportError, UnexpectedShapeError
from statusboard.services.base import ServiceAdapter

if TYPE_CHECKING:
    from statusboard.subscribers import Subscription

logger = structlog.get_logger()

ChangeCallback = Callable[[ChangeEvent], Awaitable[Any]]
Sleeper = Callable[[float], Awaitable[None]]


class Renderer(Protocol):
    """Anything that turns a named template and a record into text."""

    def render(self, name: str, record: CanonicalUpdate) -> str:
        ...


class WatcherState(str, Enum):
    """Phase of the poll cycle a watcher is currently in."""

    IDLE = "idle"
    FETCHING = "fetching"
    RENDERING = "rendering"
    COMPARING = "comparing"
    PUBLISHING = "publishing"


class CycleOutcome(str, Enum):
    """How a single poll cycle ended."""

    FETCH_FAILED = "fetch_failed"
    RENDER_FAILED = "render_failed"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


FAILED_OUTCOMES = frozenset({CycleOutcome.FETCH_FAILED, CycleOutcome.RENDER_FAILED})


class Watcher:
    """Drives one subscription's fetch, render, compare, publish cycle.

    Each cycle calls the adapter, renders the canonical update, and
    publishes a change event only when the rendered text differs from the
    cached output. Failures are logged and leave the cache untouched. The
    loop then sleeps for the subscription interval, measured from the end
    of the cycle, and repeats until cancelled.

    Attributes:
        subscriber_name: Display name of the owning subscriber.
        subscription: Subscription this watcher owns.
    """

    def __init__(
        self,
        subscriber_name: str,
        subscription: "Subscription",
        adapter: ServiceAdapter,
        renderer: Renderer,
        on_change: ChangeCallback,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Initialize watcher.

        Args:
            subscriber_name: Display name of the owning subscriber.
            subscription: Subscription to poll; its cache is written here only.
            adapter: Fetch-and-normalize adapter for the subscription's service.
            renderer: Template renderer for the service fragment.
            on_change: Async callback receiving each change event.
            sleep: Awaitable delay used between cycles.
        """
        self.subscriber_name = subscriber_name
        self.subscription = subscription
        self._adapter = adapter
        self._renderer = renderer
        self._on_change = on_change
        self._sleep = sleep
        self._state = WatcherState.IDLE
        self._cycles = 0
        self._consecutive_failures = 0
        self._log = logger.bind(
            subscriber=subscriber_name,
            service=subscription.service_type.value,
            account=subscription.account_id,
        )

    @property
    def name(self) -> str:
        """Identifier used for the asyncio task and logs."""
        return (
            f"watcher:{self.subscriber_name}:"
            f"{self.subscription.service_type.value}:{self.subscription.account_id}"
        )

    @property
    def state(self) -> WatcherState:
        """Current phase of the cycle."""
        return self._state

    @property
    def cycles(self) -> int:
        """Number of completed cycles."""
        return self._cycles

    @property
    def consecutive_failures(self) -> int:
        """Failed cycles since the last successful one."""
        return self._consecutive_failures

    async def run_cycle(self) -> CycleOutcome:
        """Run one fetch, render, compare, publish pass.

        Returns:
            Outcome of the cycle.
        """
        try:
            outcome = await self._cycle()
        finally:
            self._state = WatcherState.IDLE
            self._cycles += 1

        if outcome in FAILED_OUTCOMES:
            self._consecutive_failures += 1
        else:
            self._consecutive_failures = 0
        return outcome

    async def _cycle(self) -> CycleOutcome:
        service = self.subscription.service_type

        self._state = WatcherState.FETCHING
        try:
            update = await self._adapter.fetch_update(self.subscription.account_id)
        except (TransportError, UnexpectedShapeError) as e:
            self._log.warning(
                "watcher_fetch_failed",
                adapter=self._adapter.name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return CycleOutcome.FETCH_FAILED

        self._state = WatcherState.RENDERING
        try:
            html = self._renderer.render(service.value, update)
        except RenderError as e:
            self._log.warning(
                "watcher_render_failed",
                template=e.template,
                error=str(e),
            )
            return CycleOutcome.RENDER_FAILED

        self._state = WatcherState.COMPARING
        cache = self.subscription.cache
        previous = cache.current_snapshot()
        if not cache.compare_and_swap(html):
            self._log.debug("watcher_unchanged")
            return CycleOutcome.UNCHANGED

        self._state = WatcherState.PUBLISHING
        event = ChangeEvent(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC),
            subscriber_name=self.subscriber_name,
            service_type=service,
            rendered_content=html,
        )
        try:
            await self._on_change(event)
        except BaseException:
            # cache only holds output that reached the bus
            cache.restore(previous)
            raise
        self._log.info("watcher_published", event_id=event.id)
        return CycleOutcome.CHANGED

    async def run_forever(self) -> None:
        """Repeat cycles until the task is cancelled.

        Unexpected exceptions from a cycle are logged and the loop carries
        on after the normal delay.
        """
        self._log.info("watcher_started", interval=self.subscription.interval)
        try:
            while True:
                try:
                    await self.run_cycle()
                except Exception:
                    self._consecutive_failures += 1
                    self._log.exception("watcher_cycle_error")
                await self._sleep(self.subscription.interval)
        except asyncio.CancelledError:
            self._log.info("watcher_stopped", cycles=self._cycles)
            raise
