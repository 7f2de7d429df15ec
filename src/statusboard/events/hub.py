"""Broadcast hub streaming change events to connected viewers."""

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from sse_starlette import ServerSentEvent

from statusboard.events.bus import WILDCARD, EventBus
from statusboard.events.types import ChangeEvent, EventType

logger = structlog.get_logger()


def _heartbeat_payload() -> str:
    return json.dumps({"timestamp": datetime.now(UTC).isoformat()})


class BroadcastHub:
    """Broadcast hub managing event distribution to viewers.

    Receives change events from watchers, publishes them on the event bus,
    and turns bus subscriptions into SSE or WebSocket streams carrying
    ``update`` messages and idle heartbeats.

    Attributes:
        heartbeat_interval: Seconds between heartbeat events.
    """

    def __init__(
        self,
        event_bus: EventBus,
        heartbeat_interval: float = 15.0,
    ) -> None:
        """Initialize broadcast hub.

        Args:
            event_bus: Event bus for pub/sub.
            heartbeat_interval: Seconds between heartbeats.
        """
        self._bus = event_bus
        self._heartbeat_interval = heartbeat_interval
        self._active_connections = 0
        self._lock = asyncio.Lock()

    @property
    def active_connections(self) -> int:
        """Number of active viewer connections."""
        return self._active_connections

    async def on_change(self, event: ChangeEvent) -> None:
        """Publish a watcher's change event to every viewer.

        Args:
            event: Change event produced by a watcher.
        """
        delivered = await self._bus.publish(event)
        logger.debug(
            "event_published",
            event_id=event.id,
            subscriber=event.subscriber_name,
            service=event.service_type.value,
            delivered_to=delivered,
        )

    async def _events(self, topic: str) -> AsyncIterator[ChangeEvent | None]:
        """Yield bus events for ``topic``, or None after each idle interval.

        Ends immediately if the bus has no room for another viewer.
        """
        try:
            subscriber_id, event_iter = await self._bus.subscribe(topic)
        except ValueError as e:
            logger.warning("viewer_rejected", topic=topic, reason=str(e))
            return

        async with self._lock:
            self._active_connections += 1

        logger.info(
            "viewer_connected",
            subscriber_id=subscriber_id,
            topic=topic,
            active_connections=self._active_connections,
        )

        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=10)

        async def pump_events() -> None:
            async for event in event_iter:
                await queue.put(event)

        pump_task = asyncio.create_task(pump_events())

        try:
            while True:
                try:
                    yield await asyncio.wait_for(
                        queue.get(),
                        timeout=self._heartbeat_interval,
                    )
                except TimeoutError:
                    yield None
        finally:
            pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump_task

            async with self._lock:
                self._active_connections -= 1

            logger.info(
                "viewer_disconnected",
                subscriber_id=subscriber_id,
                active_connections=self._active_connections,
            )

    async def create_sse_generator(
        self,
        topic: str = WILDCARD,
    ) -> AsyncIterator[ServerSentEvent]:
        """Create SSE event generator for a viewer connection.

        Args:
            topic: Service type filter, "*" for every service.

        Yields:
            ``update`` events and periodic ``heartbeat`` events.
        """
        events = self._events(topic)
        try:
            async for event in events:
                if event is None:
                    yield ServerSentEvent(
                        event=EventType.HEARTBEAT.value,
                        data=_heartbeat_payload(),
                    )
                else:
                    yield ServerSentEvent(
                        id=event.id,
                        event=EventType.UPDATE.value,
                        data=json.dumps(event.to_wire()),
                    )
        except asyncio.CancelledError:
            pass
        finally:
            await events.aclose()

    async def stream_websocket(
        self,
        websocket: WebSocket,
        topic: str = WILDCARD,
    ) -> None:
        """Stream events to an accepted WebSocket until it disconnects.

        Messages are ``{"event": <type>, "data": {...}}``. Anything the
        viewer sends is read and discarded.

        Args:
            websocket: Accepted WebSocket connection.
            topic: Service type filter, "*" for every service.
        """

        async def drain_incoming() -> None:
            with contextlib.suppress(WebSocketDisconnect):
                while True:
                    await websocket.receive_text()

        async def send_events() -> None:
            events = self._events(topic)
            try:
                async for event in events:
                    if event is None:
                        message = {
                            "event": EventType.HEARTBEAT.value,
                            "data": json.loads(_heartbeat_payload()),
                        }
                    else:
                        message = {
                            "event": EventType.UPDATE.value,
                            "data": event.to_wire(),
                        }
                    await websocket.send_json(message)
            finally:
                await events.aclose()

        receiver = asyncio.create_task(drain_incoming())
        sender = asyncio.create_task(send_events())
        try:
            done, _ = await asyncio.wait(
                {receiver, sender},
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.warning("websocket_stream_error", error=str(exc))
        finally:
            for task in (receiver, sender):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect):
                    await task

    async def shutdown(self) -> None:
        """Gracefully shutdown the broadcast hub.

        Logs the shutdown with connection count.
        """
        logger.info(
            "broadcast_hub_shutdown",
            active_connections=self._active_connections,
            dropped_events=self._bus.dropped_events,
        )
