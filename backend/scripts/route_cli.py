"""Route between two coordinates from the command line.

Usage:
    python -m scripts.route_cli --source "38.6251,-90.1868" --dest "38.7487,-90.3700"

Tiles are fetched from Overpass on first use and cached in the tile cache
SQLite file, so repeat runs over the same area avoid the network.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from domain.errors import NoRoadDataError, UnsnappableError
from services.overpass_client import TileFetcher
from services.router import RoutingSession, format_distance, parse_coordinate
from services.tile_loader import TileLoader
from settings import settings

EXIT_NO_DATA = 2
EXIT_UNSNAPPABLE = 3
EXIT_NO_PATH = 4
MAX_ZOOM = 22


def _coordinate(raw: str):
    try:
        return parse_coordinate(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def _zoom(raw: str) -> int:
    try:
        zoom = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid zoom: {raw!r}")
    if not 0 <= zoom <= MAX_ZOOM:
        raise argparse.ArgumentTypeError(f"zoom must be between 0 and {MAX_ZOOM}, got {zoom}")
    return zoom


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find a drivable route between two points.")
    parser.add_argument("--source", required=True, type=_coordinate, help="Start as 'lat,lng'.")
    parser.add_argument("--dest", required=True, type=_coordinate, help="Destination as 'lat,lng'.")
    parser.add_argument("--zoom", type=_zoom, default=settings.TILE_ZOOM, help="Tile zoom level.")
    parser.add_argument(
        "--concurrency", type=int, default=settings.TILE_CONCURRENCY, help="Parallel tile fetches."
    )
    parser.add_argument("--no-cache", action="store_true", help="Skip the durable tile cache.")
    parser.add_argument("--json", action="store_true", help="Print the path as JSON.")
    parser.add_argument("--log-level", default=settings.ROUTER_LOG_LEVEL, help="Logging level.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    fetcher = TileFetcher(use_cache=not args.no_cache)
    loader = TileLoader(fetcher=fetcher, zoom=args.zoom, concurrency=args.concurrency)
    session = RoutingSession(loader=loader)

    try:
        result = session.route_between(args.source, args.dest)
    except NoRoadDataError as exc:
        print(f"Routing failed: {exc}", file=sys.stderr)
        return EXIT_NO_DATA
    except UnsnappableError as exc:
        print(f"Routing failed: {exc}", file=sys.stderr)
        return EXIT_UNSNAPPABLE

    if not result.found:
        print("Routing failed: no path found", file=sys.stderr)
        return EXIT_NO_PATH

    if args.json:
        print(json.dumps({
            "path": [p.to_dict() for p in result.path],
            "distance_m": result.distance_m,
        }))
    else:
        for p in result.path:
            print(f"{p.lat:.6f},{p.lng:.6f}")
        print(f"{len(result.path)} points, {format_distance(result.distance_m)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
