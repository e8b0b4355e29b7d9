"""
A* shortest path over a RoadNetwork.

Edge cost is the road-class weight times the haversine length of the edge;
the heuristic is the unweighted haversine distance to the goal. Because
motorway-class weights are below 1.0 the heuristic can overestimate, so the
returned path is not guaranteed to be optimal on graphs that use them.
"""
import heapq
import itertools
import math
from typing import Dict, List, Optional, Sequence

from domain.models import LatLng, NodeId, RoadNetwork

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two points in meters."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, h)))


def find_path(network: RoadNetwork, start: NodeId, goal: NodeId) -> Optional[List[NodeId]]:
    """
    Return the node sequence from start to goal, or None if goal is unreachable.

    The open set is a binary heap with lazy deletion; ties on fScore are broken
    by insertion order.
    """
    coords = network.coords
    if start not in coords or goal not in coords:
        return None
    if start == goal:
        return [start]

    g_score: Dict[NodeId, float] = {start: 0.0}
    f_score: Dict[NodeId, float] = {start: haversine_m(coords[start], coords[goal])}
    came_from: Dict[NodeId, NodeId] = {}
    counter = itertools.count()
    open_heap = [(f_score[start], next(counter), start)]

    while open_heap:
        f, _, current = heapq.heappop(open_heap)
        if f > f_score.get(current, math.inf):
            continue  # stale entry
        if current == goal:
            return _reconstruct(came_from, current)

        current_g = g_score[current]
        for neighbor, weight in network.graph.get(current, {}).items():
            tentative = current_g + weight * haversine_m(coords[current], coords[neighbor])
            if tentative < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                f_score[neighbor] = tentative + haversine_m(coords[neighbor], coords[goal])
                heapq.heappush(open_heap, (f_score[neighbor], next(counter), neighbor))
    return None


def _reconstruct(came_from: Dict[NodeId, NodeId], current: NodeId) -> List[NodeId]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def path_distance_m(network: RoadNetwork, node_ids: Sequence[NodeId]) -> float:
    """Total haversine length of a node path."""
    return sum(
        haversine_m(network.coords[a], network.coords[b])
        for a, b in zip(node_ids, node_ids[1:])
    )
