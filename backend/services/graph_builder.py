"""
Graph builder: merges tile payloads into a RoadNetwork.

Merging is idempotent and commutative. The weight of a directed pair depends
only on the way's road class, so overlapping tiles and repeated merges write
the same values.
"""
from typing import Any, Dict, List, Optional, Tuple

from domain.models import Direction, LatLng, NodeId, RoadClass, RoadNetwork, TilePayload


def _way_road_class(way: Dict[str, Any]) -> Optional[RoadClass]:
    tags = way.get("tags") or {}
    highway = tags.get("highway")
    if not highway:
        return None
    return RoadClass.from_tag(highway)


def _way_edges(
    way: Dict[str, Any], coords: Dict[NodeId, LatLng]
) -> List[Tuple[NodeId, NodeId, float, Direction]]:
    road_class = _way_road_class(way)
    node_ids = way.get("nodes") or []
    if road_class is None or len(node_ids) < 2:
        return []
    weight = road_class.weight
    direction = Direction.from_oneway_tag((way.get("tags") or {}).get("oneway"))
    edges = []
    for a, b in zip(node_ids, node_ids[1:]):
        # endpoints without coordinates would break snapping and the heuristic
        if a not in coords or b not in coords:
            continue
        edges.append((a, b, weight, direction))
    return edges


def merge_tile(network: RoadNetwork, payload: TilePayload) -> int:
    """
    Merge one tile into the network.

    First pass registers point coordinates, second pass adds edges for
    highway-tagged ways. Returns the number of directed edges written
    (re-writes of existing edges included).
    """
    written = 0
    with network.lock:
        for node in payload.nodes():
            try:
                network.coords[node["id"]] = LatLng(lat=float(node["lat"]), lng=float(node["lon"]))
            except (KeyError, TypeError, ValueError):
                continue

        for way in payload.ways():
            for a, b, weight, direction in _way_edges(way, network.coords):
                network.graph.setdefault(a, {})
                network.graph.setdefault(b, {})
                network.graph[a][b] = weight
                written += 1
                if direction is Direction.BIDIRECTIONAL:
                    network.graph[b][a] = weight
                    written += 1
    return written
