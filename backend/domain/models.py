"""
Core domain models for the tile-based road router.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import Any, Dict, Iterator, List, Optional, Tuple

NodeId = int


@dataclass(frozen=True)
class LatLng:
    """A geographic point at the caller-facing boundary."""
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True, order=True)
class TileAddress:
    """
    An XYZ tile in the standard power-of-two scheme.

    Ordering is x-major, then y, then z so corridor tiles sort into a
    stable load order.
    """
    x: int
    y: int
    z: int

    def __post_init__(self) -> None:
        if self.z < 0:
            raise ValueError(f"Invalid zoom level: {self.z}")
        n = 2 ** self.z
        if not (0 <= self.x < n and 0 <= self.y < n):
            raise ValueError(f"Tile {self.x},{self.y} out of range for zoom {self.z}")

    @property
    def cache_key(self) -> str:
        return f"tile_{self.z}_{self.x}_{self.y}"


@dataclass(frozen=True)
class TileBounds:
    """Geographic bounding box of a tile (degrees)."""
    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True)
class TilePayload:
    """
    Raw Overpass response for one tile, kept verbatim.

    `elements` holds point records ({"type": "node", "id", "lat", "lon"}) and
    way records ({"type": "way", "id", "nodes", "tags"}).
    """
    elements: List[Dict[str, Any]]
    extra: Dict[str, Any] = field(default_factory=dict)

    def nodes(self) -> Iterator[Dict[str, Any]]:
        for el in self.elements:
            if el.get("type") == "node":
                yield el

    def ways(self) -> Iterator[Dict[str, Any]]:
        for el in self.elements:
            if el.get("type") == "way":
                yield el

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["elements"] = self.elements
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TilePayload":
        extra = {k: v for k, v in data.items() if k != "elements"}
        return cls(elements=list(data.get("elements") or []), extra=extra)


class RoadClass(str, Enum):
    """OSM highway classifications with a routing weight each."""
    MOTORWAY = "motorway"
    TRUNK = "trunk"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    RESIDENTIAL = "residential"
    SERVICE = "service"
    UNCLASSIFIED = "unclassified"
    OTHER = "other"  # any other highway value

    @classmethod
    def from_tag(cls, tag: str) -> "RoadClass":
        try:
            return cls(tag)
        except ValueError:
            return cls.OTHER

    @property
    def weight(self) -> float:
        return ROAD_CLASS_WEIGHTS[self]


ROAD_CLASS_WEIGHTS: Dict[RoadClass, float] = {
    RoadClass.MOTORWAY: 0.6,
    RoadClass.TRUNK: 0.7,
    RoadClass.PRIMARY: 0.8,
    RoadClass.SECONDARY: 0.9,
    RoadClass.TERTIARY: 1.0,
    RoadClass.RESIDENTIAL: 1.2,
    RoadClass.SERVICE: 1.5,
    RoadClass.UNCLASSIFIED: 1.1,
    RoadClass.OTHER: 1.3,
}


def road_class_weight(tag: str) -> float:
    """Weight multiplier for a raw highway tag value (1.3 when unrecognized)."""
    return RoadClass.from_tag(tag).weight


class Direction(str, Enum):
    """Traversal direction of a way, resolved once from its oneway tag."""
    FORWARD_ONLY = "forward_only"
    BIDIRECTIONAL = "bidirectional"

    @classmethod
    def from_oneway_tag(cls, value: Optional[str]) -> "Direction":
        if value in ("yes", "true", "1"):
            return cls.FORWARD_ONLY
        return cls.BIDIRECTIONAL


@dataclass
class RoadNetwork:
    """
    Weighted directed road graph plus the coordinate lookup table.

    Owned by the caller of a routing session. Only the graph builder writes
    to it; snapping and search read it after the load barrier.
    """
    graph: Dict[NodeId, Dict[NodeId, float]] = field(default_factory=dict)
    coords: Dict[NodeId, LatLng] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.graph

    @property
    def node_count(self) -> int:
        return len(self.graph)

    @property
    def edge_count(self) -> int:
        return sum(len(neighbors) for neighbors in self.graph.values())

    def stats(self) -> Tuple[int, int]:
        """Node and edge counts read under the merge lock."""
        with self.lock:
            return self.node_count, self.edge_count

    def reset(self) -> None:
        with self.lock:
            self.graph.clear()
            self.coords.clear()


@dataclass
class CorridorLoadResult:
    """Summary of one corridor load."""
    tiles_requested: int = 0
    tiles_loaded: List[TileAddress] = field(default_factory=list)
    tiles_failed: Dict[TileAddress, str] = field(default_factory=dict)


@dataclass
class RouteResult:
    """
    Outcome of a routing query.

    An empty result (no node ids) means the loaded graph holds no connecting
    path; that is a normal negative answer, not an error.
    """
    node_ids: List[NodeId] = field(default_factory=list)
    path: List[LatLng] = field(default_factory=list)
    distance_m: float = 0.0
    load: Optional[CorridorLoadResult] = None

    @property
    def found(self) -> bool:
        return bool(self.node_ids)
