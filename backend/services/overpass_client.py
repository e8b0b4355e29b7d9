"""Overpass API tile fetcher.

Fetches the drivable ways inside one tile's bounding box. This is the only
place that talks to the network; every transport problem surfaces here as a
NetworkError and every zero-element answer as an EmptyTileError.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from domain.errors import EmptyTileError, NetworkError
from domain.models import TileAddress, TilePayload
from services.tile_cache_sqlite import TileCache, get_default_tile_cache
from services.tile_math import tile_bounds
from settings import settings

logger = logging.getLogger(__name__)

OVERPASS_HEADERS = {
    "User-Agent": settings.OVERPASS_USER_AGENT,
    "Content-Type": "application/x-www-form-urlencoded",
}
_session = requests.Session()


def build_tile_query(addr: TileAddress, query_timeout: int = settings.OVERPASS_QUERY_TIMEOUT) -> str:
    """Overpass QL selecting highway ways in the tile plus their nodes."""
    b = tile_bounds(addr)
    return (
        f"[out:json][timeout:{query_timeout}];\n"
        f'way["highway"]({b.south},{b.west},{b.north},{b.east});\n'
        "(._;>;);\n"
        "out body;\n"
    )


class TileFetcher:
    def __init__(
        self,
        base_url: Optional[str] = None,
        cache: Optional[TileCache] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        use_cache: Optional[bool] = None,
    ):
        self.base_url = base_url or settings.OVERPASS_URL
        enabled = settings.TILE_CACHE_ENABLED if use_cache is None else use_cache
        self.cache = (cache or get_default_tile_cache()) if enabled else None
        self.session = session or _session
        self.timeout = timeout if timeout is not None else settings.OVERPASS_TIMEOUT_SEC

    def fetch(self, addr: TileAddress) -> TilePayload:
        """Return the tile payload, from cache when possible."""
        if self.cache is not None:
            cached = self.cache.get(addr)
            if cached is not None:
                logger.debug("Tile %s:%s loaded from cache", addr.x, addr.y)
                return cached

        logger.debug("Fetching tile %s:%s", addr.x, addr.y)
        payload = self._fetch_http(addr)

        if self.cache is not None:
            self.cache.put(addr, payload)
        return payload

    def _fetch_http(self, addr: TileAddress) -> TilePayload:
        query = build_tile_query(addr)
        try:
            resp = self.session.post(
                self.base_url,
                data={"data": query},
                headers=OVERPASS_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(addr, f"request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise NetworkError(addr, f"Overpass HTTP {resp.status_code}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise NetworkError(addr, f"invalid JSON: {exc}", status_code=resp.status_code) from exc

        if not isinstance(data, dict) or not data.get("elements"):
            raise EmptyTileError(addr)
        return TilePayload.from_dict(data)


_default_tile_fetcher: Optional[TileFetcher] = None


def get_default_tile_fetcher() -> TileFetcher:
    global _default_tile_fetcher
    if _default_tile_fetcher is None:
        _default_tile_fetcher = TileFetcher()
    return _default_tile_fetcher
