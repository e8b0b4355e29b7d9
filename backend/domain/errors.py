"""
Routing error taxonomy.

Per-tile failures (NetworkError, EmptyTileError) are absorbed by the tile
loader. NoRoadDataError and UnsnappableError are request-fatal and reach the
caller. "No path" is not an exception; it is an empty RouteResult.
"""
from typing import Optional

from domain.models import TileAddress


class RoutingError(Exception):
    """Base class for routing failures."""


class TileFetchError(RoutingError):
    """A single tile could not be turned into a payload."""

    def __init__(self, addr: TileAddress, message: str):
        super().__init__(f"Tile {addr.z}/{addr.x}/{addr.y}: {message}")
        self.addr = addr


class NetworkError(TileFetchError):
    """Transport failure, non-2xx status, or unreadable body from the tile source."""

    def __init__(self, addr: TileAddress, message: str, status_code: Optional[int] = None):
        super().__init__(addr, message)
        self.status_code = status_code


class EmptyTileError(TileFetchError):
    """Response parsed but carried zero elements."""

    def __init__(self, addr: TileAddress):
        super().__init__(addr, "empty tile")


class NoRoadDataError(RoutingError):
    """No tile in the corridor produced usable road data."""

    def __init__(self, message: str = "No road data loaded"):
        super().__init__(message)


class UnsnappableError(RoutingError):
    """A query point has no graph node to snap to."""

    def __init__(self, endpoint: str):
        super().__init__(f"Unable to snap {endpoint} to road network")
        self.endpoint = endpoint
