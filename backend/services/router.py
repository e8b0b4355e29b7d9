"""
End-to-end routing: corridor load, snapping, and A* search.

A RoutingSession owns one RoadNetwork. Graph data accumulates across
queries on the same session unless a query asks for a fresh graph.
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Optional

from domain.errors import UnsnappableError
from domain.models import LatLng, RoadNetwork, RouteResult
from services.path_search import find_path, path_distance_m
from services.road_snapper import snap_to_road
from services.tile_loader import TileLoader

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344
FEET_PER_MILE = 5280
_COORD_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")


def parse_coordinate(raw: str) -> LatLng:
    """Parse "lat,lng" text. Free-text addresses are rejected."""
    match = _COORD_RE.match(raw or "")
    if not match:
        raise ValueError(f"Expected 'lat,lng' coordinates, got {raw!r}")
    lat, lng = float(match.group(1)), float(match.group(2))
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise ValueError(f"Coordinates out of range: {raw!r}")
    return LatLng(lat=lat, lng=lng)


def format_distance(meters: float) -> str:
    """Miles with one decimal from 0.1 mi up, whole feet below that."""
    miles = meters / METERS_PER_MILE
    if miles >= 0.1:
        return f"{miles:.1f} mi"
    return f"{round(miles * FEET_PER_MILE)} ft"


class RoutingSession:
    def __init__(self, network: Optional[RoadNetwork] = None, loader: Optional[TileLoader] = None):
        self.network = network if network is not None else RoadNetwork()
        self.loader = loader or TileLoader()
        # one query at a time: reset, load, snap and search must not interleave
        self._lock = threading.Lock()

    def route_between(self, source: LatLng, dest: LatLng, fresh: bool = False) -> RouteResult:
        """
        Route from source to dest over the drivable road network.

        Raises NoRoadDataError when the corridor yielded no roads and
        UnsnappableError when an endpoint has no nearby node. Returns an
        empty RouteResult when the loaded graph holds no connecting path.
        """
        with self._lock:
            return self._route_locked(source, dest, fresh)

    def _route_locked(self, source: LatLng, dest: LatLng, fresh: bool) -> RouteResult:
        if fresh:
            self.network.reset()

        load = self.loader.load_corridor(self.network, source, dest)

        start = snap_to_road(self.network, source.lat, source.lng)
        if start is None:
            raise UnsnappableError("source")
        end = snap_to_road(self.network, dest.lat, dest.lng)
        if end is None:
            raise UnsnappableError("destination")

        node_ids = find_path(self.network, start, end)
        if not node_ids:
            logger.info("No path between nodes %s and %s", start, end)
            return RouteResult(load=load)

        distance = path_distance_m(self.network, node_ids)
        logger.info("Routing complete: %d nodes, %s", len(node_ids), format_distance(distance))
        return RouteResult(
            node_ids=node_ids,
            path=[self.network.coords[n] for n in node_ids],
            distance_m=distance,
            load=load,
        )


def route_between(source: LatLng, dest: LatLng, loader: Optional[TileLoader] = None) -> RouteResult:
    """Route with a graph scoped to this single request."""
    return RoutingSession(loader=loader).route_between(source, dest)
