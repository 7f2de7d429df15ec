"""Event bus fan-out tests."""

import asyncio
import uuid
from datetime import UTC, datetime

import pytest

from statusboard.events.bus import EventBus
from statusboard.events.types import ChangeEvent, ServiceType


def _event(service: ServiceType = ServiceType.CODE_ACTIVITY, html: str = "<p/>") -> ChangeEvent:
    return ChangeEvent(
        id=str(uuid.uuid4()),
        timestamp=datetime.now(UTC),
        subscriber_name="Alice",
        service_type=service,
        rendered_content=html,
    )


@pytest.mark.asyncio
async def test_publish_reaches_every_wildcard_subscriber() -> None:
    bus = EventBus()
    _, first = await bus.subscribe("*")
    _, second = await bus.subscribe("*")
    event = _event()

    delivered = await bus.publish(event)

    assert delivered == 2
    assert await anext(first) is event
    assert await anext(second) is event


@pytest.mark.asyncio
async def test_topic_subscriber_only_sees_its_service() -> None:
    bus = EventBus()
    _, steam_only = await bus.subscribe("steam")

    assert await bus.publish(_event(ServiceType.CODE_ACTIVITY)) == 0
    steam_event = _event(ServiceType.GAME_PRESENCE)
    assert await bus.publish(steam_event) == 1

    assert await anext(steam_only) is steam_event


@pytest.mark.asyncio
async def test_unknown_topic_falls_back_to_wildcard() -> None:
    bus = EventBus()
    _, events = await bus.subscribe("myspace")

    assert await bus.publish(_event()) == 1
    await anext(events)


@pytest.mark.asyncio
async def test_full_queue_drops_oldest() -> None:
    bus = EventBus(queue_size=2)
    _, events = await bus.subscribe("*")
    published = [_event(html=str(i)) for i in range(3)]

    for event in published:
        await bus.publish(event)

    assert bus.dropped_events == 1
    assert [(await anext(events)).rendered_content for _ in range(2)] == ["1", "2"]


@pytest.mark.asyncio
async def test_max_subscribers_enforced() -> None:
    bus = EventBus(max_subscribers=1)
    await bus.subscribe("*")

    with pytest.raises(ValueError):
        await bus.subscribe("*")


@pytest.mark.asyncio
async def test_closing_iterator_unsubscribes() -> None:
    bus = EventBus()
    _, events = await bus.subscribe("*")
    await bus.publish(_event())
    await anext(events)

    await events.aclose()

    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_concurrent_publishers_deliver_whole_events() -> None:
    bus = EventBus(queue_size=100)
    _, events = await bus.subscribe("*")
    github = [_event(ServiceType.CODE_ACTIVITY, f"g{i}") for i in range(10)]
    steam = [_event(ServiceType.GAME_PRESENCE, f"s{i}") for i in range(10)]

    async def produce(batch: list[ChangeEvent]) -> None:
        for event in batch:
            await bus.publish(event)
            await asyncio.sleep(0)

    await asyncio.gather(produce(github), produce(steam))

    received = [await anext(events) for _ in range(20)]
    assert [e for e in received if e.service_type is ServiceType.CODE_ACTIVITY] == github
    assert [e for e in received if e.service_type is ServiceType.GAME_PRESENCE] == steam
