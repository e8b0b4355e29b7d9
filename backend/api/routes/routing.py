"""
Routing API routes.

Handles point-to-point route requests over the on-demand road graph.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from domain.errors import NoRoadDataError, UnsnappableError
from domain.models import LatLng
from services.router import RoutingSession

router = APIRouter()
logger = logging.getLogger(__name__)

_session: Optional[RoutingSession] = None


def get_routing_session() -> RoutingSession:
    global _session
    if _session is None:
        _session = RoutingSession()
    return _session


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteRequest(BaseModel):
    source: Coordinate
    destination: Coordinate
    fresh: bool = False


class RouteResponse(BaseModel):
    path: List[Coordinate]
    node_ids: List[int]
    distance_m: float
    tiles_requested: int
    tiles_loaded: int
    tiles_failed: int


@router.post("", response_model=RouteResponse)
def route(data: RouteRequest):
    """
    Compute a drivable route between two coordinates.

    Tiles along the corridor are fetched (or read from cache) before the
    search, so the first request in a new area can take a while.
    """
    session = get_routing_session()
    source = LatLng(lat=data.source.lat, lng=data.source.lng)
    dest = LatLng(lat=data.destination.lat, lng=data.destination.lng)

    try:
        result = session.route_between(source, dest, fresh=data.fresh)
    except NoRoadDataError as exc:
        logger.warning("Routing failed: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))
    except UnsnappableError as exc:
        logger.warning("Routing failed: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))

    if not result.found:
        raise HTTPException(status_code=404, detail="No path found")

    load = result.load
    return RouteResponse(
        path=[Coordinate(lat=p.lat, lng=p.lng) for p in result.path],
        node_ids=result.node_ids,
        distance_m=result.distance_m,
        tiles_requested=load.tiles_requested if load else 0,
        tiles_loaded=len(load.tiles_loaded) if load else 0,
        tiles_failed=len(load.tiles_failed) if load else 0,
    )
