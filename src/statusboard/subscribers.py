"""Subscriber list model and YAML loader."""
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from statusboard.events.cache import ChangeCache, Snapshot
from statusboard.events.types import ServiceType
from statusboard.exceptions import ConfigError

logger = structlog.get_logger()


class SubscriptionConfig(BaseModel):
    """One ``services`` entry from the subscriber list.

    Attributes:
        name: Service type name (``github``, ``lastfm``, ``steam``).
        username: Account identifier on that service.
        interval: Poll interval override in seconds.
    """

    name: ServiceType
    username: str = Field(min_length=1)
    interval: float | None = Field(default=None, gt=0)


class SubscriberConfig(BaseModel):
    """One ``users`` entry from the subscriber list."""

    name: str = Field(min_length=1)
    services: list[SubscriptionConfig] = Field(default_factory=list)


class SubscriberListConfig(BaseModel):
    """Root of the subscriber list file."""

    users: list[SubscriberConfig] = Field(default_factory=list)

    @field_validator("users", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class Subscription:
    """A (service, account) pairing with its own cadence and cached output.

    Attributes:
        service_type: Service this subscription polls.
        account_id: Account identifier passed to the adapter.
        interval: Seconds to sleep between poll cycles.
        cache: Last rendered output, written only by the owning watcher.
    """

    def __init__(
        self,
        service_type: ServiceType,
        account_id: str,
        interval: float,
        cache: ChangeCache | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.service_type = service_type
        self.account_id = account_id
        self.interval = interval
        self.cache = cache or ChangeCache()

    def current_snapshot(self) -> Snapshot:
        """Read-only view of the cached output for page bootstrap."""
        return self.cache.current_snapshot()

    def __repr__(self) -> str:
        return (
            f"Subscription({self.service_type.value!r}, {self.account_id!r}, "
            f"interval={self.interval})"
        )


class Subscriber:
    """A monitored user and their subscriptions."""

    def __init__(self, name: str, subscriptions: list[Subscription]) -> None:
        self._name = name
        self._subscriptions = tuple(subscriptions)

    @property
    def name(self) -> str:
        """Display name."""
        return self._name

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        """Subscriptions in declaration order."""
        return self._subscriptions


def build_subscribers(
    config: SubscriberListConfig,
    default_intervals: dict[ServiceType, float],
) -> list[Subscriber]:
    """Turn a validated subscriber list into domain objects.

    Args:
        config: Parsed subscriber list.
        default_intervals: Poll interval per service when an entry has none.

    Returns:
        Subscribers in file order.
    """
    subscribers = []
    for user in config.users:
        subscriptions = [
            Subscription(
                service_type=entry.name,
                account_id=entry.username,
                interval=entry.interval or default_intervals[entry.name],
            )
            for entry in user.services
        ]
        subscribers.append(Subscriber(user.name, subscriptions))
    return subscribers


def load_subscribers(
    path: Path,
    default_intervals: dict[ServiceType, float],
) -> list[Subscriber]:
    """Load and validate the subscriber list YAML file.

    Args:
        path: Location of the YAML file.
        default_intervals: Poll interval per service when an entry has none.

    Returns:
        Subscribers in file order.

    Raises:
        ConfigError: If the file cannot be read, parsed, or validated.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read subscriber list {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    try:
        config = SubscriberListConfig.model_validate(raw or {})
    except ValidationError as e:
        raise ConfigError(f"Invalid subscriber list {path}: {e}") from e

    subscribers = build_subscribers(config, default_intervals)
    logger.info(
        "subscribers_loaded",
        path=str(path),
        subscribers=len(subscribers),
        subscriptions=sum(len(s.subscriptions) for s in subscribers),
    )
    return subscribers
