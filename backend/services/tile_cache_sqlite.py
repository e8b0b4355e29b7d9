"""
SQLite-backed durable cache for Overpass tile payloads.

Keys are `tile_<z>_<x>_<y>`. Entries never expire; caching is an
optimization, so reads and writes never raise.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import time
from typing import Optional

from domain.models import TileAddress, TilePayload
from settings import settings

logger = logging.getLogger(__name__)

TILE_KEY_PREFIX = "tile_"


class CacheCapacityError(Exception):
    """A write did not fit in the cache's storage budget."""


def _is_capacity_error(exc: sqlite3.Error) -> bool:
    msg = str(exc).lower()
    return "full" in msg or "quota" in msg


class TileCache:
    def __init__(self, db_path: Optional[str] = None, max_bytes: Optional[int] = None):
        self.db_path = db_path or settings.TILE_CACHE_PATH
        self.max_bytes = settings.TILE_CACHE_MAX_BYTES if max_bytes is None else max_bytes
        os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tile_cache (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                fetched_at INTEGER NOT NULL
            )
            """
        )
        self._conn.commit()

    def get(self, addr: TileAddress) -> Optional[TilePayload]:
        """Return the cached payload for the tile, or None on a miss."""
        key = addr.cache_key
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT payload FROM tile_cache WHERE key=?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Tile cache read failed for %s: %s", key, exc)
            return None
        if not row:
            logger.debug("tile cache miss %s", key)
            return None
        try:
            payload = TilePayload.from_dict(json.loads(row[0]))
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Tile cache entry %s unreadable: %s", key, exc)
            return None
        logger.debug("tile cache hit %s", key)
        return payload

    def put(self, addr: TileAddress, payload: TilePayload) -> None:
        """
        Store a payload. On a capacity failure every cached tile is cleared
        and the write retried once; a second failure is dropped.
        """
        key = addr.cache_key
        raw = json.dumps(payload.to_dict())
        with self._lock:
            try:
                self._write(key, raw)
            except CacheCapacityError as exc:
                logger.warning("Tile cache full storing %s (%s); clearing cached tiles", key, exc)
                self._clear_locked()
                try:
                    self._write(key, raw)
                except (CacheCapacityError, sqlite3.Error) as retry_exc:
                    logger.warning("Tile cache write for %s dropped after retry: %s", key, retry_exc)
                    return
            except sqlite3.Error as exc:
                logger.warning("Tile cache write failed for %s: %s", key, exc)
                return
        logger.debug("tile cache store %s", key)

    def _write(self, key: str, raw: str) -> None:
        if self.max_bytes > 0:
            row = self._conn.execute(
                "SELECT COALESCE(SUM(LENGTH(payload)), 0) FROM tile_cache WHERE key != ?",
                (key,),
            ).fetchone()
            if row[0] + len(raw) > self.max_bytes:
                raise CacheCapacityError(f"{row[0] + len(raw)} bytes exceeds {self.max_bytes}")
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO tile_cache (key, payload, fetched_at) VALUES (?, ?, ?)",
                (key, raw, int(time.time())),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            if _is_capacity_error(exc):
                raise CacheCapacityError(str(exc)) from exc
            raise

    def _clear_locked(self) -> None:
        try:
            self._conn.execute(
                "DELETE FROM tile_cache WHERE key LIKE ?", (TILE_KEY_PREFIX + "%",)
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Tile cache clear failed: %s", exc)

    def clear(self) -> None:
        """Drop every cached tile."""
        with self._lock:
            self._clear_locked()

    def __contains__(self, addr: TileAddress) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM tile_cache WHERE key=?", (addr.cache_key,)
            ).fetchone()
        return row is not None

    def __len__(self) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM tile_cache WHERE key LIKE ?", (TILE_KEY_PREFIX + "%",)
            ).fetchone()
        return int(row[0])

    def close(self) -> None:
        with self._lock:
            self._conn.close()


_default_tile_cache: Optional[TileCache] = None


def get_default_tile_cache() -> TileCache:
    global _default_tile_cache
    if _default_tile_cache is None:
        _default_tile_cache = TileCache()
    return _default_tile_cache
