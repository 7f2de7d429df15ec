"""Adapter contract and shared normalization helpers."""
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

import humanize

from statusboard.events.types import CanonicalUpdate
from statusboard.exceptions import UnexpectedShapeError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class JsonClient(Protocol):
    """Structural interface for fetching JSON documents.

    Adapters depend on this rather than on aiohttp directly so tests can
    pass a fake that returns canned payloads.
    """

    async def get_json(
        self,
        url: str,
        *,
        service: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class ServiceAdapter(Protocol):
    """Fetch-and-normalize capability for one service type."""

    name: str

    async def prepare(self) -> None:
        """Run the one-time startup handshake, if the service needs one."""
        ...

    async def fetch_update(self, account_id: str) -> CanonicalUpdate:
        """Fetch the latest state for an account and normalize it."""
        ...


def relative_time(occurred_at: datetime, now: datetime) -> str:
    """Describe how long ago ``occurred_at`` was, e.g. ``"3 minutes ago"``."""
    return humanize.naturaltime(now - occurred_at)


def from_unix(value: Any, service: str) -> datetime:
    """Parse a unix timestamp (int or numeric string) as UTC.

    Raises:
        UnexpectedShapeError: If the value is not numeric.
    """
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise UnexpectedShapeError(
            f"Invalid unix timestamp {value!r}", service=service
        ) from e


def from_iso8601(value: Any, service: str) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given.

    Raises:
        UnexpectedShapeError: If the value is not a valid timestamp.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise UnexpectedShapeError(
            f"Invalid ISO-8601 timestamp {value!r}", service=service
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
