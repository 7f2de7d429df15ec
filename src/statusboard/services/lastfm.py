"""Last.fm recent-tracks adapter."""
from typing import Any

from statusboard.events.types import MusicScrobbleUpdate, ServiceType
from statusboard.exceptions import TransportError, UnexpectedShapeError
from statusboard.services.base import Clock, JsonClient, from_unix, relative_time, utc_now

API_URL = "https://ws.audioscrobbler.com/2.0/"


def _text(node: Any) -> str:
    """Read the ``#text`` value Last.fm wraps most scalar fields in."""
    if isinstance(node, dict):
        return str(node.get("#text") or "")
    return str(node or "")


class LastfmScrobbleAdapter:
    """Surfaces a user's currently playing or last scrobbled track."""

    name = ServiceType.MUSIC_SCROBBLE.value

    def __init__(
        self,
        client: JsonClient,
        api_key: str,
        api_url: str = API_URL,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._api_url = api_url
        self._clock = clock

    async def prepare(self) -> None:
        """No handshake required."""

    async def fetch_update(self, account_id: str) -> MusicScrobbleUpdate:
        """Fetch the most recent track for ``account_id``.

        Raises:
            TransportError: If the request fails or Last.fm returns an error.
            UnexpectedShapeError: If no track is present in the response.
        """
        data = await self._client.get_json(
            self._api_url,
            service=self.name,
            params={
                "method": "user.getrecenttracks",
                "user": account_id,
                "limit": "1",
                "api_key": self._api_key,
                "format": "json",
            },
        )
        return self.normalize(account_id, data)

    def normalize(self, account_id: str, data: Any) -> MusicScrobbleUpdate:
        """Build a canonical update from a ``user.getrecenttracks`` response."""
        if isinstance(data, dict) and "error" in data:
            raise TransportError(
                f"Last.fm error {data.get('error')}: {data.get('message', '')}",
                service=self.name,
            )

        try:
            track = data["recenttracks"]["track"]
        except (KeyError, TypeError) as e:
            raise UnexpectedShapeError("Response has no recenttracks.track", service=self.name) from e

        # limit=1 still yields a list when a now-playing track precedes the last scrobble
        if isinstance(track, list):
            if not track:
                raise UnexpectedShapeError("Empty track list", service=self.name)
            track = track[0]
        if not isinstance(track, dict):
            raise UnexpectedShapeError("Track is not an object", service=self.name)

        attrs = track.get("@attr")
        now_playing = bool(isinstance(attrs, dict) and attrs.get("nowplaying"))

        occurred_at = None
        timeago = None
        date = track.get("date")
        if not now_playing and isinstance(date, dict) and date.get("uts"):
            occurred_at = from_unix(date["uts"], self.name)
            timeago = relative_time(occurred_at, self._clock())

        image = None
        images = track.get("image")
        if isinstance(images, list):
            small = [i for i in images if isinstance(i, dict) and i.get("size") == "small"]
            if small:
                image = _text(small[0])

        try:
            return MusicScrobbleUpdate(
                subject=account_id,
                occurred_at=occurred_at,
                relative_time=timeago,
                artist=_text(track.get("artist")),
                album=_text(track.get("album")),
                track=str(track["name"]),
                url=str(track.get("url") or ""),
                now_playing=now_playing,
                image=image,
            )
        except (KeyError, ValueError) as e:
            raise UnexpectedShapeError(f"Malformed track: {e!r}", service=self.name) from e
