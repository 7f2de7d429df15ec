"""Events subsystem: per-subscription watchers and viewer broadcasting."""
from statusboard.events.bus import EventBus
from statusboard.events.cache import ChangeCache, Snapshot
from statusboard.events.hub import BroadcastHub
from statusboard.events.types import ChangeEvent, EventType, ServiceType
from statusboard.events.watcher import CycleOutcome, Watcher, WatcherState

__all__ = [
    "BroadcastHub",
    "ChangeCache",
    "ChangeEvent",
    "CycleOutcome",
    "EventBus",
    "EventType",
    "ServiceType",
    "Snapshot",
    "Watcher",
    "WatcherState",
]
