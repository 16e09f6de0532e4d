from __future__ import annotations

from app.core.http import ResilientHTTPClient


class BubblemapsAdapter:
    """Read-only client for the Bubblemaps legacy API.

    A response with ``status != "OK"`` is returned as-is: the service uses it
    to explain why a map is missing. Only transport problems raise
    (UpstreamError from the HTTP client).
    """

    def __init__(self, http: ResilientHTTPClient, api_base: str, app_base: str) -> None:
        self.http = http
        self.api_base = api_base.rstrip("/")
        self.app_base = app_base.rstrip("/")

    async def _get(self, path: str, chain: str, token: str) -> dict:
        data = await self.http.get_json(f"{self.api_base}/{path}", params={"chain": chain, "token": token})
        if not isinstance(data, dict):
            return {"status": "KO", "message": "Unexpected response shape"}
        return data

    async def get_availability(self, chain: str, token: str) -> dict:
        return await self._get("map-availability", chain, token)

    async def get_metadata(self, chain: str, token: str) -> dict:
        return await self._get("map-metadata", chain, token)

    async def get_map_data(self, chain: str, token: str) -> dict:
        return await self._get("map-data", chain, token)

    def map_url(self, chain: str, token: str) -> str:
        return f"{self.app_base}/{chain}/token/{token}"
