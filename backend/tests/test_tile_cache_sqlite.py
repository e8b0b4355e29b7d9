import sqlite3

from domain.models import TileAddress, TilePayload
from services import tile_cache_sqlite as tcs


def _payload(n_nodes=2):
    elements = [
        {"type": "node", "id": i, "lat": 38.0 + i * 0.001, "lon": -90.0}
        for i in range(1, n_nodes + 1)
    ]
    elements.append({"type": "way", "id": 100, "nodes": list(range(1, n_nodes + 1)), "tags": {"highway": "primary"}})
    return TilePayload(elements=elements, extra={"version": 0.6})


def test_put_then_get_returns_payload_verbatim(tmp_path):
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"))
    addr = TileAddress(x=1021, y=1570, z=12)
    payload = _payload()

    assert cache.get(addr) is None
    cache.put(addr, payload)

    assert cache.get(addr) == payload
    assert addr in cache
    assert len(cache) == 1


def test_cache_survives_reopen(tmp_path):
    path = str(tmp_path / "tiles.sqlite")
    addr = TileAddress(x=3, y=5, z=4)
    first = tcs.TileCache(db_path=path)
    first.put(addr, _payload())
    first.close()

    second = tcs.TileCache(db_path=path)
    assert second.get(addr) == _payload()


def test_entries_are_keyed_by_tile_string(tmp_path):
    path = tmp_path / "tiles.sqlite"
    cache = tcs.TileCache(db_path=str(path))
    cache.put(TileAddress(x=1, y=2, z=3), _payload())
    cache.close()

    conn = sqlite3.connect(str(path))
    keys = [row[0] for row in conn.execute("SELECT key FROM tile_cache")]
    conn.close()
    assert keys == ["tile_3_1_2"]


def test_unreadable_row_reads_as_miss(tmp_path):
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"))
    cache._conn.execute(
        "INSERT INTO tile_cache (key, payload, fetched_at) VALUES (?, ?, ?)",
        ("tile_3_1_2", "{not json", 0),
    )
    cache._conn.commit()
    assert cache.get(TileAddress(x=1, y=2, z=3)) is None


def test_capacity_failure_clears_namespace_and_retries(tmp_path):
    big = _payload(n_nodes=40)
    size = len(tcs.json.dumps(big.to_dict()))
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"), max_bytes=int(size * 1.5))
    a = TileAddress(x=0, y=0, z=2)
    b = TileAddress(x=1, y=0, z=2)

    cache.put(a, big)
    cache.put(b, big)

    # a was evicted by the clear, b was stored on the retry
    assert cache.get(a) is None
    assert cache.get(b) == big
    assert len(cache) == 1


def test_second_capacity_failure_is_swallowed(tmp_path):
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"), max_bytes=10)
    addr = TileAddress(x=0, y=0, z=1)

    cache.put(addr, _payload())  # must not raise

    assert cache.get(addr) is None
    assert len(cache) == 0


def test_sqlite_disk_full_is_treated_as_capacity(tmp_path):
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"))
    old = TileAddress(x=0, y=0, z=1)
    cache.put(old, _payload())

    class DiskFullOnce:
        """Connection wrapper whose first INSERT fails like a full disk."""

        def __init__(self, conn):
            self._conn = conn
            self.raised = 0

        def execute(self, sql, *args):
            if not self.raised and sql.lstrip().upper().startswith("INSERT"):
                self.raised += 1
                raise sqlite3.OperationalError("database or disk is full")
            return self._conn.execute(sql, *args)

        def __getattr__(self, name):
            return getattr(self._conn, name)

    conn = DiskFullOnce(cache._conn)
    cache._conn = conn
    new = TileAddress(x=1, y=1, z=1)
    cache.put(new, _payload())

    assert conn.raised == 1
    assert cache.get(old) is None
    assert cache.get(new) == _payload()


def test_capacity_error_detection():
    assert tcs._is_capacity_error(sqlite3.OperationalError("database or disk is full"))
    assert not tcs._is_capacity_error(sqlite3.OperationalError("no such table: tile_cache"))


def test_read_failure_returns_none(tmp_path):
    cache = tcs.TileCache(db_path=str(tmp_path / "tiles.sqlite"))
    cache._conn.execute("DROP TABLE tile_cache")
    cache._conn.commit()
    assert cache.get(TileAddress(x=0, y=0, z=1)) is None
