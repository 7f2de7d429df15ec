"""Last-rendered-output cache for a single subscription."""
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict


class Snapshot(BaseModel):
    """What a subscription currently shows.

    Attributes:
        html: Last successfully rendered fragment, None if no data yet.
        updated_at: When ``html`` was last replaced.
    """

    model_config = ConfigDict(frozen=True)

    html: str | None = None
    updated_at: datetime | None = None

    @property
    def has_data(self) -> bool:
        """Whether at least one cycle has completed successfully."""
        return self.html is not None


EMPTY_SNAPSHOT = Snapshot()


class ChangeCache:
    """Holds the last rendered output for one subscription.

    Only the owning watcher calls ``compare_and_swap``; any number of
    readers may call ``current_snapshot``. The stored snapshot is replaced
    as a whole so readers never observe a half-written value.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._snapshot = EMPTY_SNAPSHOT
        self._clock = clock or (lambda: datetime.now(UTC))

    def current_snapshot(self) -> Snapshot:
        """Return the current snapshot (empty before the first change)."""
        return self._snapshot

    def compare_and_swap(self, new_text: str) -> bool:
        """Store ``new_text`` if it differs from the cached output.

        Args:
            new_text: Freshly rendered output.

        Returns:
            True if the cache changed, False if the text was identical.
        """
        if self._snapshot.html == new_text:
            return False
        self._snapshot = Snapshot(html=new_text, updated_at=self._clock())
        return True

    def restore(self, snapshot: Snapshot) -> None:
        """Put back a snapshot taken before a swap whose publish failed."""
        self._snapshot = snapshot
