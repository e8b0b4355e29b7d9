"""
Snap arbitrary coordinates to the nearest loaded graph node.
"""
from typing import Optional

from domain.models import NodeId, RoadNetwork


def snap_to_road(network: RoadNetwork, lat: float, lon: float) -> Optional[NodeId]:
    """
    Return the graph node closest to (lat, lon), or None if the graph is empty.

    Uses squared planar degree distance over every node in the graph; good
    enough at regional scale.
    """
    best: Optional[NodeId] = None
    best_d = float("inf")
    for node_id in network.graph:
        pt = network.coords.get(node_id)
        if pt is None:
            continue
        d = (lat - pt.lat) ** 2 + (lon - pt.lng) ** 2
        if d < best_d:
            best_d = d
            best = node_id
    return best
