"""Event and record types shared by watchers, adapters, and the hub."""
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ServiceType(str, Enum):
    """Supported external services.

    The value is also the template name and the ``service`` wire field.
    """

    CODE_ACTIVITY = "github"
    MUSIC_SCROBBLE = "lastfm"
    GAME_PRESENCE = "steam"


class EventType(str, Enum):
    """Server-to-viewer message types."""

    UPDATE = "update"
    HEARTBEAT = "heartbeat"


Topic = Literal["github", "lastfm", "steam", "*"]


class CanonicalUpdate(BaseModel):
    """Normalized record produced from one successful fetch.

    Attributes:
        subject: Who the update is about (username or persona name).
        occurred_at: When the underlying activity happened, if known.
        relative_time: Human-readable age of the activity, if known.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    occurred_at: datetime | None = None
    relative_time: str | None = None


class CodeActivityUpdate(CanonicalUpdate):
    """Most recent public event from a code-hosting feed."""

    avatar: str
    event_type: str
    repo: str
    payload: dict[str, Any] = Field(default_factory=dict)


class MusicScrobbleUpdate(CanonicalUpdate):
    """Most recent (or currently playing) scrobbled track."""

    artist: str
    album: str
    track: str
    url: str
    now_playing: bool = False
    image: str | None = None


class GamePresenceUpdate(CanonicalUpdate):
    """Presence summary for a game-platform account."""

    profile_url: str
    avatar: str
    state: str | None = None


class ChangeEvent(BaseModel):
    """Broadcast payload emitted when a subscription's output changes.

    Attributes:
        id: Unique event identifier (UUID).
        timestamp: When the change was detected (UTC).
        subscriber_name: Display name of the subscriber.
        service_type: Service the change belongs to.
        rendered_content: Newly rendered HTML fragment.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique event identifier (UUID)")
    timestamp: datetime = Field(description="Detection timestamp (UTC)")
    subscriber_name: str
    service_type: ServiceType
    rendered_content: str

    @property
    def topic(self) -> str:
        """Bus topic used to route this event."""
        return self.service_type.value

    def to_wire(self) -> dict[str, str]:
        """Serialize to the ``update`` message body sent to viewers."""
        return {
            "name": self.subscriber_name,
            "service": self.service_type.value,
            "html": self.rendered_content,
        }
