"""
Parallel corridor tile loader.

Drains the corridor's tiles through a small fixed pool of worker threads,
merging each fetched tile into the shared RoadNetwork. A failed tile is
logged and skipped; the load only fails when nothing usable was merged.
"""
import logging
import queue
import threading
import time
from typing import Callable, Optional

from domain.errors import NoRoadDataError, TileFetchError
from domain.models import CorridorLoadResult, LatLng, RoadNetwork, TileAddress
from services.graph_builder import merge_tile
from services.overpass_client import TileFetcher, get_default_tile_fetcher
from services.tile_math import sorted_corridor_tiles
from settings import settings

logger = logging.getLogger(__name__)


class TileLoader:
    def __init__(
        self,
        fetcher: Optional[TileFetcher] = None,
        zoom: Optional[int] = None,
        concurrency: Optional[int] = None,
        delay_sec: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher or get_default_tile_fetcher()
        self.zoom = settings.TILE_ZOOM if zoom is None else zoom
        self.concurrency = max(1, settings.TILE_CONCURRENCY if concurrency is None else concurrency)
        self.delay_sec = settings.TILE_DELAY_SEC if delay_sec is None else delay_sec
        self._sleep = sleep

    def load_corridor(self, network: RoadNetwork, source: LatLng, dest: LatLng) -> CorridorLoadResult:
        """
        Fetch and merge every corridor tile between source and dest.

        Blocks until all workers finish. Raises NoRoadDataError if the
        network is still empty afterwards.
        """
        tiles = sorted_corridor_tiles(source, dest, self.zoom)
        logger.info("Loading %d tiles", len(tiles))

        pending: "queue.Queue[TileAddress]" = queue.Queue()
        for addr in tiles:
            pending.put(addr)

        result = CorridorLoadResult(tiles_requested=len(tiles))
        progress_lock = threading.Lock()
        completed = [0]

        def worker() -> None:
            while True:
                try:
                    addr = pending.get_nowait()
                except queue.Empty:
                    return
                try:
                    payload = self.fetcher.fetch(addr)
                    merge_tile(network, payload)
                    with progress_lock:
                        result.tiles_loaded.append(addr)
                except TileFetchError as exc:
                    logger.warning("Tile %s:%s skipped: %s", addr.x, addr.y, exc)
                    with progress_lock:
                        result.tiles_failed[addr] = str(exc)
                except Exception as exc:
                    logger.warning("Tile %s:%s skipped (unexpected): %s", addr.x, addr.y, exc)
                    with progress_lock:
                        result.tiles_failed[addr] = str(exc)
                with progress_lock:
                    completed[0] += 1
                    logger.debug("Tile progress: %d/%d", completed[0], len(tiles))
                if self.delay_sec > 0:
                    self._sleep(self.delay_sec)

        workers = [
            threading.Thread(target=worker, name=f"tile-loader-{i}", daemon=True)
            for i in range(min(self.concurrency, len(tiles)) or 1)
        ]
        for th in workers:
            th.start()
        for th in workers:
            th.join()

        logger.info(
            "Corridor loaded: %d/%d tiles, graph has %d nodes",
            len(result.tiles_loaded),
            len(tiles),
            network.node_count,
        )
        if network.is_empty:
            raise NoRoadDataError()
        return result
