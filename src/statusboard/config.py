"""Service configuration loaded from environment variables."""
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from statusboard.events.types import ServiceType

DEFAULT_TEMPLATES_DIR = str(Path(__file__).parent / "templates")


class Settings(BaseSettings):
    """Statusboard configuration loaded from environment variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging, API docs, and template auto-reload.
        title: Dashboard page title.
        cors_origins_raw: Raw comma-separated CORS origins string.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        subscribers_file: YAML file listing users and their services.
        templates_dir: Directory holding the Jinja2 templates.
        github_access_token: Optional GitHub OAuth token.
        lastfm_api_key: Last.fm API key.
        steam_api_key: Steam Web API key.
        github_interval: Default GitHub poll interval in seconds.
        lastfm_interval: Default Last.fm poll interval in seconds.
        steam_interval: Default Steam poll interval in seconds.
        http_timeout: Total seconds allowed per outbound request.
        event_queue_size: Maximum size of each viewer queue.
        event_max_subscribers: Maximum number of concurrent viewers.
        sse_heartbeat_interval: Seconds between SSE heartbeat events.
    """

    model_config = SettingsConfigDict(
        env_prefix="STATUSBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    title: str = "Statusboard"
    cors_origins_raw: str = ""
    shutdown_timeout: float = 30.0

    subscribers_file: str = "subscribers.yaml"
    templates_dir: str = DEFAULT_TEMPLATES_DIR

    github_access_token: str = ""
    lastfm_api_key: str = ""
    steam_api_key: str = ""

    github_interval: float = 60.0
    lastfm_interval: float = 10.0
    steam_interval: float = 30.0
    http_timeout: float = 10.0

    event_queue_size: int = 100
    event_max_subscribers: int = 100
    sse_heartbeat_interval: float = 15.0

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]

    @property
    def default_intervals(self) -> dict[ServiceType, float]:
        """Poll interval per service type for entries without an override."""
        return {
            ServiceType.CODE_ACTIVITY: self.github_interval,
            ServiceType.MUSIC_SCROBBLE: self.lastfm_interval,
            ServiceType.GAME_PRESENCE: self.steam_interval,
        }
