from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class ResilientHTTPClient:
    """Thin JSON client over httpx.

    Every failure (timeout, connection error, non-2xx, undecodable body) is
    raised as UpstreamError on the first attempt. Callers decide what a
    failure means; nothing here retries.
    """

    def __init__(
        self,
        timeout: float = 20.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def _request_json(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(f"{url} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to fetch {url}: {exc!r}") from exc
        except ValueError as exc:
            raise UpstreamError(f"Malformed JSON from {url}") from exc

    async def get_json(
        self, url: str, params: dict[str, Any] | None = None, headers: dict[str, str] | None = None
    ) -> Any:
        return await self._request_json("GET", url, params=params, headers=headers)
