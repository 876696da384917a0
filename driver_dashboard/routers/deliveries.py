# driver_dashboard/routers/deliveries.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import DuplicateKeyError, MemStorage, get_storage
from driver_dashboard.models import Delivery, DeliveryCreate, DeliveryStatus, DeliveryUpdate
from driver_dashboard.services.geocoding import geocode_address

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(get_current_user)])


def get_delivery_or_404(delivery_id: int, storage: MemStorage) -> Delivery:
    delivery = storage.deliveries.get(delivery_id)
    if delivery is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Delivery {delivery_id} not found")
    return delivery


@router.get("", response_model=List[Delivery], summary="List deliveries")
def list_deliveries(
    date: Optional[date] = None,
    status: Optional[DeliveryStatus] = None,
    driver_id: Optional[int] = None,
    storage: MemStorage = Depends(get_storage),
):
    return storage.list_deliveries(on_date=date, status=status, driver_id=driver_id)


@router.post("", response_model=Delivery, status_code=status.HTTP_201_CREATED, summary="Schedule a delivery")
def create_delivery(payload: DeliveryCreate, storage: MemStorage = Depends(get_storage)):
    data = payload.model_dump()
    if payload.coordinates is None:
        coordinates = geocode_address(payload.address)
        if coordinates is not None:
            data["coordinates"] = coordinates.model_dump()
    try:
        delivery = storage.create_delivery(data)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.info(f"Delivery {delivery.id} ({delivery.delivery_code}) scheduled for {delivery.scheduled_time.isoformat()}")
    return delivery


@router.get("/{delivery_id}", response_model=Delivery)
def get_delivery(delivery_id: int, storage: MemStorage = Depends(get_storage)):
    return get_delivery_or_404(delivery_id, storage)


@router.put("/{delivery_id}", response_model=Delivery)
def update_delivery(delivery_id: int, payload: DeliveryUpdate, storage: MemStorage = Depends(get_storage)):
    existing = get_delivery_or_404(delivery_id, storage)
    changes = payload.model_dump(exclude_unset=True)
    if "address" in changes and "coordinates" not in changes and changes["address"] != existing.address:
        coordinates = geocode_address(changes["address"])
        if coordinates is not None:
            changes["coordinates"] = coordinates.model_dump()
    if "status" in changes and changes["status"] != existing.status:
        logger.info(f"Delivery {delivery_id} status {existing.status} -> {changes['status']}")
    try:
        return storage.update_delivery(delivery_id, changes)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{delivery_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_delivery(delivery_id: int, storage: MemStorage = Depends(get_storage)):
    if not storage.deliveries.delete(delivery_id):
        logger.warning(f"Delivery {delivery_id} not found for deletion.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Delivery {delivery_id} not found")
    logger.info(f"Delivery {delivery_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
