"""Test doubles for the JSON client and service adapters."""
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from statusboard.events.types import CanonicalUpdate
from statusboard.exceptions import TransportError

FIXED_NOW = datetime(2024, 1, 1, 0, 10, tzinfo=UTC)


class FakeJsonClient:
    """JsonClient double returning canned payloads keyed by URL suffix."""

    def __init__(self, responses: Mapping[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, dict[str, str], dict[str, str]]] = []

    async def get_json(
        self,
        url: str,
        *,
        service: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        self.calls.append((url, dict(params or {}), dict(headers or {})))
        for suffix, payload in self.responses.items():
            if url.endswith(suffix):
                if isinstance(payload, Exception):
                    raise payload
                return payload
        raise TransportError(f"No canned response for {url}", service=service)


class FakeAdapter:
    """ServiceAdapter double replaying scripted results.

    The last result repeats once the script is exhausted.
    """

    def __init__(self, name: str, results: list[CanonicalUpdate | Exception]) -> None:
        self.name = name
        self._results = list(results)
        self.calls: list[str] = []
        self.prepared = False

    async def prepare(self) -> None:
        self.prepared = True

    async def fetch_update(self, account_id: str) -> CanonicalUpdate:
        self.calls.append(account_id)
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result
