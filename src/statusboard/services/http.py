"""aiohttp-backed JSON client used by the service adapters."""
import json
from collections.abc import Mapping
from typing import Any

import aiohttp
import structlog

from statusboard.exceptions import TransportError

logger = structlog.get_logger()

USER_AGENT = "statusboard/0.1"


def _excerpt(body: bytes) -> str:
    return body[:200].decode("utf-8", errors="replace")


class HttpJsonClient:
    """GET JSON documents over a shared ``aiohttp.ClientSession``.

    Every failure mode (connection error, timeout, non-2xx status, body
    that is not JSON) surfaces as ``TransportError``.
    """

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 10.0) -> None:
        """Initialize client.

        Args:
            session: Session owned by the application lifespan.
            timeout: Total seconds allowed per request.
        """
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(
        self,
        url: str,
        *,
        service: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Fetch ``url`` and decode its JSON body.

        Args:
            url: Absolute URL to request.
            service: Service name used in errors and logs.
            params: Query string parameters.
            headers: Extra request headers.

        Returns:
            Decoded JSON document.

        Raises:
            TransportError: On any network, status, or decoding failure.
        """
        request_headers = {"user-agent": USER_AGENT, "accept": "application/json"}
        if headers:
            request_headers.update(headers)

        logger.debug("http_get", service=service, url=url)

        try:
            async with self._session.get(
                url,
                params=dict(params or {}),
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                if resp.status >= 400:
                    raise TransportError(
                        f"HTTP {resp.status} from {url}: {_excerpt(body)}",
                        service=service,
                        status_code=resp.status,
                    )
                # UnicodeDecodeError is a ValueError
                try:
                    return json.loads(body)
                except ValueError as e:
                    raise TransportError(
                        f"Invalid JSON from {url}: {_excerpt(body)}",
                        service=service,
                        status_code=resp.status,
                    ) from e
        except TransportError:
            raise
        except TimeoutError as e:
            raise TransportError(f"Request to {url} timed out", service=service) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}", service=service) from e
