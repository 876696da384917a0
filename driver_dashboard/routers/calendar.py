# driver_dashboard/routers/calendar.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import (
    CalendarEvent,
    CalendarEventCreate,
    CalendarEventUpdate,
    EventType,
    User,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def get_event_or_404(event_id: int, storage: MemStorage) -> CalendarEvent:
    event = storage.calendar_events.get(event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Calendar event {event_id} not found")
    return event


def get_owned_event(event_id: int, user: User, storage: MemStorage) -> CalendarEvent:
    event = get_event_or_404(event_id, storage)
    if event.user_id != user.id:
        logger.warning(f"User {user.id} tried to access calendar event {event_id} owned by {event.user_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return event


@router.get("", response_model=List[CalendarEvent], summary="List calendar events")
def list_events(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    driver_id: Optional[int] = None,
    event_type: Optional[EventType] = None,
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    return storage.list_calendar_events(user.id, start=start, end=end, driver_id=driver_id, event_type=event_type)


@router.post("", response_model=CalendarEvent, status_code=status.HTTP_201_CREATED, summary="Schedule an activity")
def create_event(
    payload: CalendarEventCreate,
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    data = payload.model_dump()
    if data["assigned_driver"] is None:
        data["assigned_driver"] = user.id
    event = storage.calendar_events.insert({**data, "user_id": user.id})
    logger.info(f"Calendar event {event.id} '{event.title}' ({event.event_type}) created by user {user.id}")
    return event


@router.get("/{event_id}", response_model=CalendarEvent)
def get_event(event_id: int, user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    return get_owned_event(event_id, user, storage)


@router.put("/{event_id}", response_model=CalendarEvent)
def update_event(
    event_id: int,
    payload: CalendarEventUpdate,
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    get_owned_event(event_id, user, storage)
    return storage.calendar_events.replace(event_id, payload.model_dump(exclude_unset=True))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: int, user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    get_owned_event(event_id, user, storage)
    storage.calendar_events.delete(event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
