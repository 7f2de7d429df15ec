"""Steam presence adapter."""
from typing import Any

import structlog

from statusboard.events.types import GamePresenceUpdate, ServiceType
from statusboard.exceptions import StartupError, StatusboardError, UnexpectedShapeError
from statusboard.services.base import Clock, JsonClient, from_unix, relative_time, utc_now

logger = structlog.get_logger()

API_URL = "https://api.steampowered.com"

# Indexed by the numeric personastate code.
PERSONA_STATES: tuple[str, ...] = (
    "Offline",
    "Online",
    "Busy",
    "Away",
    "Snooze",
    "Looking to trade",
    "Looking to play",
)

PERSONA_STATE_FLAGS: dict[int, str] = {
    512: "Mobile",
    1024: "Big Picture Mode",
}


def presence_label(player: dict[str, Any]) -> str | None:
    """Compute the display label for a player summary.

    An in-game player is always "Playing <game>". Unknown state codes give
    no label; unknown flags are ignored.
    """
    game = player.get("gameextrainfo")
    state = player.get("personastate")
    if game:
        label: str | None = f"Playing {game}"
    elif isinstance(state, int) and 0 <= state < len(PERSONA_STATES):
        label = PERSONA_STATES[state]
    else:
        label = None

    flags = player.get("personastateflags")
    flag = PERSONA_STATE_FLAGS.get(flags) if isinstance(flags, int) else None
    if label and flag:
        label = f"{label} ({flag})"
    return label


class SteamPresenceAdapter:
    """Surfaces a Steam account's online state and current game."""

    name = ServiceType.GAME_PRESENCE.value

    def __init__(
        self,
        client: JsonClient,
        api_key: str,
        api_url: str = API_URL,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self._clock = clock

    async def prepare(self) -> None:
        """Verify the API key can reach the player summary interface.

        Raises:
            StartupError: If the key is missing, rejected, or the interface
                list does not include ISteamUser.
        """
        if not self._api_key:
            raise StartupError("Steam API key is not configured")

        try:
            data = await self._client.get_json(
                f"{self._api_url}/ISteamWebAPIUtil/GetSupportedAPIList/v0001/",
                service=self.name,
                params={"key": self._api_key},
            )
        except StatusboardError as e:
            raise StartupError(f"Steam handshake failed: {e}") from e

        try:
            interfaces = {i["name"] for i in data["apilist"]["interfaces"]}
        except (KeyError, TypeError) as e:
            raise StartupError("Steam handshake returned an unexpected response") from e

        if "ISteamUser" not in interfaces:
            raise StartupError("Steam API key cannot access ISteamUser")

        logger.info("steam_ready", interfaces=len(interfaces))

    async def fetch_update(self, account_id: str) -> GamePresenceUpdate:
        """Fetch the player summary for a 64-bit Steam id.

        Raises:
            TransportError: If the request fails.
            UnexpectedShapeError: If no player is returned.
        """
        data = await self._client.get_json(
            f"{self._api_url}/ISteamUser/GetPlayerSummaries/v0002/",
            service=self.name,
            params={"key": self._api_key, "steamids": account_id},
        )
        return self.normalize(data)

    def normalize(self, data: Any) -> GamePresenceUpdate:
        """Build a canonical update from a ``GetPlayerSummaries`` response."""
        try:
            players = data["response"]["players"]
        except (KeyError, TypeError) as e:
            raise UnexpectedShapeError("Response has no players list", service=self.name) from e
        if not isinstance(players, list) or not players or not isinstance(players[0], dict):
            raise UnexpectedShapeError("Empty players list", service=self.name)

        player = players[0]
        occurred_at = None
        lastlogoff = None
        if player.get("personastate") == 0 and player.get("lastlogoff"):
            occurred_at = from_unix(player["lastlogoff"], self.name)
            lastlogoff = relative_time(occurred_at, self._clock())

        try:
            return GamePresenceUpdate(
                subject=str(player["personaname"]),
                occurred_at=occurred_at,
                relative_time=lastlogoff,
                profile_url=str(player.get("profileurl") or ""),
                avatar=str(player.get("avatar") or ""),
                state=presence_label(player),
            )
        except (KeyError, ValueError) as e:
            raise UnexpectedShapeError(f"Malformed player: {e!r}", service=self.name) from e
