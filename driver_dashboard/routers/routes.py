# driver_dashboard/routers/routes.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from driver_dashboard.config import settings
from driver_dashboard.core import filters, geo
from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import (
    DeliveryPoint,
    OptimizeRouteRequest,
    Route,
    RouteCreate,
    RouteOptimization,
    RoutePreferences,
    RouteUpdate,
    Station,
    StationType,
    User,
)
from driver_dashboard.routers.recommendations import llm_http_exception
from driver_dashboard.services import llm_client
from driver_dashboard.services.llm_client import LLMError

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(get_current_user)])


def get_route_or_404(route_id: int, storage: MemStorage) -> Route:
    route = storage.routes.get(route_id)
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Route {route_id} not found")
    return route


def estimate_distance(route: RouteCreate, storage: MemStorage) -> float:
    """Great-circle length of start -> waypoint deliveries -> end."""
    stops = [d.coordinates for d in storage.get_deliveries_by_ids(route.waypoints)]
    return geo.path_distance_km([route.start_location, *stops, route.end_location])


@router.get("", response_model=List[Route], summary="List routes")
def list_routes(
    date: Optional[date] = None,
    driver_id: Optional[int] = None,
    storage: MemStorage = Depends(get_storage),
):
    return storage.list_routes(on_date=date, driver_id=driver_id)


@router.get("/current", response_model=Route, summary="The driver's route for today")
def current_route(user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    route = storage.get_current_route(user.id, filters.utc_today())
    if route is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No current route found")
    return route


@router.post("", response_model=Route, status_code=status.HTTP_201_CREATED, summary="Create a route")
def create_route(payload: RouteCreate, storage: MemStorage = Depends(get_storage)):
    data = payload.model_dump()
    if payload.distance is None:
        data["distance"] = estimate_distance(payload, storage)
        if payload.estimated_duration is None and settings.AVERAGE_SPEED_KMH > 0:
            data["estimated_duration"] = round(data["distance"] / settings.AVERAGE_SPEED_KMH * 60)
    route = storage.routes.insert(data)
    logger.info(f"Route {route.id} '{route.name}' created with {len(route.waypoints)} waypoints")
    return route


@router.post("/optimize", response_model=RouteOptimization, summary="AI route optimization for ad-hoc deliveries")
def optimize_deliveries(payload: OptimizeRouteRequest):
    try:
        return llm_client.optimize_route(payload)
    except LLMError as e:
        raise llm_http_exception(e)


@router.get("/{route_id}", response_model=Route)
def get_route(route_id: int, storage: MemStorage = Depends(get_storage)):
    return get_route_or_404(route_id, storage)


@router.put("/{route_id}", response_model=Route)
def update_route(route_id: int, payload: RouteUpdate, storage: MemStorage = Depends(get_storage)):
    get_route_or_404(route_id, storage)
    return storage.routes.replace(route_id, payload.model_dump(exclude_unset=True))


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_route(route_id: int, storage: MemStorage = Depends(get_storage)):
    if not storage.routes.delete(route_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Route {route_id} not found")
    logger.info(f"Route {route_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{route_id}/stations", response_model=List[Station], summary="Stations near the start of a route")
def route_stations(
    route_id: int,
    radius: Optional[float] = Query(None, gt=0, description="Kilometers"),
    type: Optional[StationType] = None,
    storage: MemStorage = Depends(get_storage),
):
    route = get_route_or_404(route_id, storage)
    return storage.get_nearby_stations(
        route.start_location.lat,
        route.start_location.lng,
        radius or settings.DEFAULT_STATION_RADIUS_KM,
        station_type=type,
    )


@router.post("/{route_id}/optimize", response_model=Route, summary="AI-optimize a stored route")
def optimize_stored_route(
    route_id: int,
    preferences: Optional[RoutePreferences] = None,
    storage: MemStorage = Depends(get_storage),
):
    route = get_route_or_404(route_id, storage)
    deliveries = storage.get_deliveries_by_ids(route.waypoints)
    if not deliveries:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Route has no known deliveries to optimize")

    request = OptimizeRouteRequest(
        deliveries=[DeliveryPoint.model_validate(d.model_dump()) for d in deliveries],
        start_location=route.start_location,
        preferences=preferences,
    )
    try:
        result = llm_client.optimize_route(request)
    except LLMError as e:
        raise llm_http_exception(e)

    # Waypoints without a stored delivery were not sent; keep them at the end
    unresolved = [w for w in route.waypoints if w not in result.optimized_route]
    updated = storage.routes.replace(route_id, {
        "waypoints": result.optimized_route + unresolved,
        "distance": result.estimated_distance,
        "estimated_duration": round(result.estimated_duration),
        "optimized": True,
        "suggestions": result.model_dump(mode="json"),
    })
    logger.info(f"Route {route_id} optimized: {route.waypoints} -> {updated.waypoints}")
    return updated
