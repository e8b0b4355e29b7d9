"""
XYZ tile math for corridor loading.

Converts coordinates to Web Mercator tile addresses and enumerates the
rectangular tile cover between two points.
"""
import math
from typing import List, Set

from domain.models import LatLng, TileAddress, TileBounds

# Web Mercator latitude limit; tan/sec blow up past this.
MAX_MERCATOR_LAT = 85.05112878


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def coordinate_to_tile(lat: float, lon: float, zoom: int) -> TileAddress:
    """Map a lat/lon to the tile that contains it at the given zoom."""
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    lat_rad = math.radians(lat)
    n = 2 ** zoom
    x = math.floor((lon + 180.0) / 360.0 * n)
    y = math.floor((1.0 - math.atanh(math.sin(lat_rad)) / math.pi) / 2.0 * n)
    return TileAddress(x=_clamp(x, 0, n - 1), y=_clamp(y, 0, n - 1), z=zoom)


def _tile_lat(y: int, n: int) -> float:
    return math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * y / n))))


def tile_to_coordinate(addr: TileAddress) -> LatLng:
    """North-west corner of the tile."""
    n = 2 ** addr.z
    return LatLng(lat=_tile_lat(addr.y, n), lng=addr.x / n * 360.0 - 180.0)


def tile_bounds(addr: TileAddress) -> TileBounds:
    """Geographic bounding box of the tile."""
    n = 2 ** addr.z
    return TileBounds(
        south=_tile_lat(addr.y + 1, n),
        west=addr.x / n * 360.0 - 180.0,
        north=_tile_lat(addr.y, n),
        east=(addr.x + 1) / n * 360.0 - 180.0,
    )


def corridor_tiles(a: LatLng, b: LatLng, zoom: int) -> Set[TileAddress]:
    """
    Every tile in the axis-aligned rectangle spanned by the tiles of a and b.

    This is a coarse cover, not a line trace; over-fetching is accepted.
    """
    ta = coordinate_to_tile(a.lat, a.lng, zoom)
    tb = coordinate_to_tile(b.lat, b.lng, zoom)
    return {
        TileAddress(x=x, y=y, z=zoom)
        for x in range(min(ta.x, tb.x), max(ta.x, tb.x) + 1)
        for y in range(min(ta.y, tb.y), max(ta.y, tb.y) + 1)
    }


def sorted_corridor_tiles(a: LatLng, b: LatLng, zoom: int) -> List[TileAddress]:
    """Corridor tiles in x-major, then y, load order."""
    return sorted(corridor_tiles(a, b, zoom))
