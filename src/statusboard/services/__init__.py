"""Service adapters and the capability table that maps service types to them."""
from typing import TYPE_CHECKING

from statusboard.events.types import ServiceType
from statusboard.services.base import JsonClient, ServiceAdapter
from statusboard.services.github import GitHubActivityAdapter
from statusboard.services.http import HttpJsonClient
from statusboard.services.lastfm import LastfmScrobbleAdapter
from statusboard.services.steam import SteamPresenceAdapter

if TYPE_CHECKING:
    from statusboard.config import Settings

AdapterTable = dict[ServiceType, ServiceAdapter]


def build_adapters(client: JsonClient, settings: "Settings") -> AdapterTable:
    """Construct one adapter per supported service type.

    Args:
        client: JSON client shared by all adapters.
        settings: Credentials source.

    Returns:
        Capability table keyed by service type.
    """
    return {
        ServiceType.CODE_ACTIVITY: GitHubActivityAdapter(
            client, access_token=settings.github_access_token
        ),
        ServiceType.MUSIC_SCROBBLE: LastfmScrobbleAdapter(
            client, api_key=settings.lastfm_api_key
        ),
        ServiceType.GAME_PRESENCE: SteamPresenceAdapter(
            client, api_key=settings.steam_api_key
        ),
    }


__all__ = [
    "AdapterTable",
    "GitHubActivityAdapter",
    "HttpJsonClient",
    "JsonClient",
    "LastfmScrobbleAdapter",
    "ServiceAdapter",
    "SteamPresenceAdapter",
    "build_adapters",
]
