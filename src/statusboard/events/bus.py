"""Viewer fan-out: one bounded queue per dashboard connection."""
import asyncio
import uuid
from collections.abc import AsyncIterator

import structlog

from statusboard.events.types import ChangeEvent, ServiceType

logger = structlog.get_logger()

WILDCARD = "*"
TOPICS = (*(s.value for s in ServiceType), WILDCARD)


class EventBus:
    """Routes change events to the viewers watching their service.

    A viewer subscribes to one service topic or to ``*``. Each viewer
    gets its own queue of ``queue_size`` events; a viewer that reads too
    slowly loses its oldest pending update rather than holding up the
    watchers. ``publish`` never awaits a queue.
    """

    def __init__(
        self,
        queue_size: int = 100,
        max_subscribers: int = 100,
    ) -> None:
        """Initialize bus.

        Args:
            queue_size: Pending updates kept per viewer.
            max_subscribers: Viewer connections allowed at once.
        """
        self._viewers: dict[str, dict[str, asyncio.Queue[ChangeEvent]]] = {
            topic: {} for topic in TOPICS
        }
        self._queue_size = queue_size
        self._max_subscribers = max_subscribers
        self._dropped_count = 0
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        """Connected viewers, whatever their topic."""
        return sum(len(queues) for queues in self._viewers.values())

    @property
    def dropped_events(self) -> int:
        """Updates discarded from slow viewers' queues."""
        return self._dropped_count

    def _offer(self, queue: asyncio.Queue[ChangeEvent], event: ChangeEvent) -> bool:
        if queue.full():
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                return False
            self._dropped_count += 1
        queue.put_nowait(event)
        return True

    async def publish(self, event: ChangeEvent) -> int:
        """Hand ``event`` to viewers of its service and of ``*``.

        Returns:
            How many viewer queues accepted the event.
        """
        queues = [
            *self._viewers[event.topic].values(),
            *self._viewers[WILDCARD].values(),
        ]
        return sum(self._offer(queue, event) for queue in queues)

    async def subscribe(
        self,
        topic: str = WILDCARD,
    ) -> tuple[str, AsyncIterator[ChangeEvent]]:
        """Register a viewer.

        Args:
            topic: Service value to follow. Anything that is not a known
                service follows every service.

        Returns:
            Viewer id and an iterator over its updates. Closing the
            iterator unregisters the viewer.

        Raises:
            ValueError: If ``max_subscribers`` viewers are already connected.
        """
        if topic not in self._viewers:
            topic = WILDCARD

        async with self._lock:
            if self.subscriber_count >= self._max_subscribers:
                raise ValueError("Maximum subscribers reached")
            viewer_id = str(uuid.uuid4())
            queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self._queue_size)
            self._viewers[topic][viewer_id] = queue

        async def updates() -> AsyncIterator[ChangeEvent]:
            try:
                while True:
                    yield await queue.get()
            finally:
                await self.unsubscribe(topic, viewer_id)

        return viewer_id, updates()

    async def unsubscribe(self, topic: str, subscriber_id: str) -> None:
        """Drop a viewer's queue. Unknown ids are ignored."""
        async with self._lock:
            if self._viewers.get(topic, {}).pop(subscriber_id, None) is not None:
                logger.debug("subscriber_removed", subscriber_id=subscriber_id, topic=topic)
