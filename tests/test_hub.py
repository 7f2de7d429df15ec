"""Broadcast hub streaming tests."""

import asyncio
import json
import uuid
from datetime import UTC, datetime

import pytest

from statusboard.events.bus import EventBus
from statusboard.events.hub import BroadcastHub
from statusboard.events.types import ChangeEvent, ServiceType


def _event() -> ChangeEvent:
    return ChangeEvent(
        id=str(uuid.uuid4()),
        timestamp=datetime.now(UTC),
        subscriber_name="Alice",
        service_type=ServiceType.MUSIC_SCROBBLE,
        rendered_content="<p>song</p>",
    )


async def _wait_for_subscriber(bus: EventBus) -> None:
    for _ in range(100):
        if bus.subscriber_count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("viewer never subscribed")


@pytest.mark.asyncio
async def test_sse_generator_emits_update_messages() -> None:
    bus = EventBus()
    hub = BroadcastHub(bus, heartbeat_interval=5.0)
    stream = hub.create_sse_generator("*")

    pending = asyncio.create_task(anext(stream))
    await _wait_for_subscriber(bus)
    event = _event()
    await hub.on_change(event)
    message = await asyncio.wait_for(pending, timeout=1.0)

    assert message.event == "update"
    assert message.id == event.id
    assert json.loads(message.data) == {
        "name": "Alice",
        "service": "lastfm",
        "html": "<p>song</p>",
    }
    assert hub.active_connections == 1

    await stream.aclose()
    assert hub.active_connections == 0
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_sse_generator_emits_heartbeat_when_idle() -> None:
    hub = BroadcastHub(EventBus(), heartbeat_interval=0.01)
    stream = hub.create_sse_generator("*")

    message = await asyncio.wait_for(anext(stream), timeout=1.0)

    assert message.event == "heartbeat"
    assert "timestamp" in json.loads(message.data)
    await stream.aclose()


@pytest.mark.asyncio
async def test_on_change_without_viewers_is_harmless() -> None:
    bus = EventBus()
    hub = BroadcastHub(bus)

    await hub.on_change(_event())

    assert bus.dropped_events == 0


@pytest.mark.asyncio
async def test_stream_ends_cleanly_when_bus_is_full() -> None:
    bus = EventBus(max_subscribers=1)
    hub = BroadcastHub(bus, heartbeat_interval=5.0)
    first = hub.create_sse_generator("*")
    pending = asyncio.create_task(anext(first))
    await _wait_for_subscriber(bus)

    second = hub.create_sse_generator("*")
    with pytest.raises(StopAsyncIteration):
        await anext(second)

    assert hub.active_connections == 1
    assert bus.subscriber_count == 1

    await hub.on_change(_event())
    await asyncio.wait_for(pending, timeout=1.0)
    await first.aclose()
    assert bus.subscriber_count == 0
