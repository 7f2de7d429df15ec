"""Shutdown coordinator tests."""

import asyncio

import pytest

from statusboard.lifecycle import GracefulShutdown


@pytest.mark.asyncio
async def test_trigger_releases_waiter() -> None:
    shutdown = GracefulShutdown(timeout=5.0)
    waiter = asyncio.create_task(shutdown.wait_for_trigger())
    await asyncio.sleep(0)
    assert not waiter.done()

    shutdown.trigger()
    shutdown.trigger()

    await asyncio.wait_for(waiter, timeout=1.0)
    assert shutdown.timeout == 5.0
