# driver_dashboard/routers/stations.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from driver_dashboard.config import settings
from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import Station, StationCreate, StationType, StationUpdate

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(get_current_user)])


def get_station_or_404(station_id: int, storage: MemStorage) -> Station:
    station = storage.stations.get(station_id)
    if station is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Station {station_id} not found")
    return station


@router.get("", response_model=List[Station], summary="List stations, optionally those near a point")
def list_stations(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, description="Kilometers"),
    type: Optional[StationType] = None,
    storage: MemStorage = Depends(get_storage),
):
    if lat is None and lng is None:
        if radius is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'radius' requires 'lat' and 'lng'")
        return storage.list_stations(type)
    if lat is None or lng is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Both 'lat' and 'lng' are required for a nearby search")
    return storage.get_nearby_stations(lat, lng, radius or settings.DEFAULT_STATION_RADIUS_KM, station_type=type)


@router.post("", response_model=Station, status_code=status.HTTP_201_CREATED, summary="Add a station")
def create_station(payload: StationCreate, storage: MemStorage = Depends(get_storage)):
    station = storage.stations.insert(payload.model_dump())
    logger.info(f"Station {station.id} '{station.name}' ({station.type}) added")
    return station


@router.get("/{station_id}", response_model=Station)
def get_station(station_id: int, storage: MemStorage = Depends(get_storage)):
    return get_station_or_404(station_id, storage)


@router.put("/{station_id}", response_model=Station)
def update_station(station_id: int, payload: StationUpdate, storage: MemStorage = Depends(get_storage)):
    get_station_or_404(station_id, storage)
    return storage.stations.replace(station_id, payload.model_dump(exclude_unset=True))


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_station(station_id: int, storage: MemStorage = Depends(get_storage)):
    if not storage.stations.delete(station_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Station {station_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
