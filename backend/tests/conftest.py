import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def isolated_tile_cache(monkeypatch, tmp_path):
    """Keep every test away from the real tile cache file and Overpass."""
    from services import overpass_client, tile_cache_sqlite

    cache = tile_cache_sqlite.TileCache(db_path=str(tmp_path / "tile_cache.sqlite"))
    monkeypatch.setattr(tile_cache_sqlite, "_default_tile_cache", cache)
    monkeypatch.setattr(overpass_client, "_default_tile_fetcher", None)
    yield cache
    cache.close()
