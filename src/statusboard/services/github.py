"""GitHub public activity adapter."""
from typing import Any

from statusboard.events.types import CodeActivityUpdate, ServiceType
from statusboard.exceptions import UnexpectedShapeError
from statusboard.services.base import Clock, JsonClient, from_iso8601, relative_time, utc_now

API_URL = "https://api.github.com"


class GitHubActivityAdapter:
    """Surfaces a user's most recent public GitHub event."""

    name = ServiceType.CODE_ACTIVITY.value

    def __init__(
        self,
        client: JsonClient,
        access_token: str = "",
        api_url: str = API_URL,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._access_token = access_token
        self._api_url = api_url.rstrip("/")
        self._clock = clock

    async def prepare(self) -> None:
        """No handshake required."""

    async def fetch_update(self, account_id: str) -> CodeActivityUpdate:
        """Fetch the newest public event for ``account_id``.

        Raises:
            TransportError: If the request fails.
            UnexpectedShapeError: If the event list is empty or malformed.
        """
        headers = {"accept": "application/vnd.github+json"}
        if self._access_token:
            headers["authorization"] = f"token {self._access_token}"

        events = await self._client.get_json(
            f"{self._api_url}/users/{account_id}/events/public",
            service=self.name,
            headers=headers,
        )
        return self.normalize(account_id, events)

    def normalize(self, account_id: str, events: Any) -> CodeActivityUpdate:
        """Build a canonical update from the raw event list (newest first)."""
        if not isinstance(events, list) or not events:
            raise UnexpectedShapeError("Expected a non-empty event list", service=self.name)

        latest = events[0]
        try:
            occurred_at = from_iso8601(latest["created_at"], self.name)
            payload = latest.get("payload") or {}
            return CodeActivityUpdate(
                subject=account_id,
                occurred_at=occurred_at,
                relative_time=relative_time(occurred_at, self._clock()),
                avatar=latest["actor"]["avatar_url"],
                event_type=latest["type"],
                repo=latest["repo"]["name"],
                payload=payload if isinstance(payload, dict) else {},
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise UnexpectedShapeError(f"Malformed event: {e!r}", service=self.name) from e
