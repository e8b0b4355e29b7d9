import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


class Settings:
    def __init__(self) -> None:
        # Tile corridor loading
        self.TILE_ZOOM: int = _as_int(os.getenv("TILE_ZOOM"), 12)
        self.TILE_CONCURRENCY: int = _as_int(os.getenv("TILE_CONCURRENCY"), 3)
        self.TILE_DELAY_SEC: float = _as_float(os.getenv("TILE_DELAY_SEC"), 0.25)

        # Overpass data source
        self.OVERPASS_URL: str = os.getenv(
            "OVERPASS_URL", "https://overpass-api.de/api/interpreter"
        )
        self.OVERPASS_USER_AGENT: str = os.getenv(
            "OVERPASS_USER_AGENT", "tile-road-router/0.1 (overpass tile fetch)"
        )
        self.OVERPASS_TIMEOUT_SEC: float = _as_float(os.getenv("OVERPASS_TIMEOUT_SEC"), 30.0)
        self.OVERPASS_QUERY_TIMEOUT: int = _as_int(os.getenv("OVERPASS_QUERY_TIMEOUT"), 25)

        # Durable tile cache
        self.TILE_CACHE_ENABLED: bool = _as_bool(os.getenv("TILE_CACHE_ENABLED"), True)
        self.TILE_CACHE_PATH: str = os.getenv(
            "TILE_CACHE_PATH", str(DATA_DIR / "tile_cache.sqlite")
        )
        self.TILE_CACHE_MAX_BYTES: int = _as_int(os.getenv("TILE_CACHE_MAX_BYTES"), 0)

        self.ROUTER_LOG_LEVEL: str = os.getenv("ROUTER_LOG_LEVEL", "INFO").upper()


settings = Settings()
