# driver_dashboard/data/storage.py
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel

from driver_dashboard.core import filters, geo
from driver_dashboard.models import (
    CalendarEvent,
    Delivery,
    InventoryItem,
    Route,
    Station,
    User,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class DuplicateKeyError(ValueError):
    """A unique field already holds the given value."""


class Table(Generic[RecordT]):
    """
    Map-backed table of one record type with an auto-incrementing integer id.

    Ids start at 1 and are never reused, even after a delete. Records are
    immutable from the caller's point of view: `replace` validates a new record
    built from the stored one plus the changes and swaps it in whole.
    """

    def __init__(self, name: str, model: Type[RecordT]):
        self.name = name
        self.model = model
        self._rows: Dict[int, RecordT] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._rows)

    def all(self) -> List[RecordT]:
        return list(self._rows.values())

    def get(self, record_id: int) -> Optional[RecordT]:
        return self._rows.get(record_id)

    def find(self, predicate: Callable[[RecordT], bool]) -> List[RecordT]:
        return [row for row in self._rows.values() if predicate(row)]

    def insert(self, data: Dict[str, Any]) -> RecordT:
        record = self.model.model_validate({**data, "id": self._next_id})
        self._rows[record.id] = record
        self._next_id += 1
        logger.debug(f"Inserted {self.name} {record.id}")
        return record

    def replace(self, record_id: int, changes: Dict[str, Any]) -> Optional[RecordT]:
        existing = self._rows.get(record_id)
        if existing is None:
            return None
        record = self.model.model_validate({**existing.model_dump(), **changes, "id": record_id})
        self._rows[record_id] = record
        return record

    def delete(self, record_id: int) -> bool:
        return self._rows.pop(record_id, None) is not None


class MemStorage:
    """In-memory storage for every dashboard entity. No locking; last write wins."""

    def __init__(self):
        self.users: Table[User] = Table("user", User)
        self.inventory: Table[InventoryItem] = Table("inventory item", InventoryItem)
        self.deliveries: Table[Delivery] = Table("delivery", Delivery)
        self.routes: Table[Route] = Table("route", Route)
        self.stations: Table[Station] = Table("station", Station)
        self.calendar_events: Table[CalendarEvent] = Table("calendar event", CalendarEvent)

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        matches = self.users.find(lambda user: user.username == username)
        return matches[0] if matches else None

    def create_user(self, data: Dict[str, Any]) -> User:
        if self.get_user_by_username(data["username"]) is not None:
            raise DuplicateKeyError(f"Username '{data['username']}' is already taken")
        return self.users.insert(data)

    # Inventory

    def list_inventory(
        self,
        user_id: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[InventoryItem]:
        items = self.inventory.find(lambda item: item.user_id == user_id)
        items = filters.filter_inventory(items, category=category, search=search)
        if sort_by:
            items = filters.sort_records(items, sort_by, descending=descending)
        return items

    # Deliveries

    def list_deliveries(
        self,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
        driver_id: Optional[int] = None,
    ) -> List[Delivery]:
        def matches(delivery: Delivery) -> bool:
            if on_date is not None and not filters.on_day(delivery.scheduled_time, on_date):
                return False
            if status is not None and delivery.status != status:
                return False
            if driver_id is not None and delivery.assigned_driver != driver_id:
                return False
            return True

        return sorted(self.deliveries.find(matches), key=lambda d: filters.normalize(d.scheduled_time))

    def get_delivery_by_code(self, delivery_code: str) -> Optional[Delivery]:
        matches = self.deliveries.find(lambda delivery: delivery.delivery_code == delivery_code)
        return matches[0] if matches else None

    def _check_delivery_code(self, delivery_code: str, delivery_id: Optional[int] = None) -> None:
        existing = self.get_delivery_by_code(delivery_code)
        if existing is not None and existing.id != delivery_id:
            raise DuplicateKeyError(f"Delivery code '{delivery_code}' is already used by delivery {existing.id}")

    def create_delivery(self, data: Dict[str, Any]) -> Delivery:
        self._check_delivery_code(data["delivery_code"])
        return self.deliveries.insert(data)

    def update_delivery(self, delivery_id: int, changes: Dict[str, Any]) -> Optional[Delivery]:
        if "delivery_code" in changes:
            self._check_delivery_code(changes["delivery_code"], delivery_id)
        return self.deliveries.replace(delivery_id, changes)

    def get_deliveries_by_ids(self, delivery_ids: List[int]) -> List[Delivery]:
        """Resolves ids in order; ids with no stored delivery are logged and skipped."""
        found = []
        for delivery_id in delivery_ids:
            delivery = self.deliveries.get(delivery_id)
            if delivery is None:
                logger.warning(f"Delivery {delivery_id} referenced but not found. Skipping.")
                continue
            found.append(delivery)
        return found

    # Routes

    def list_routes(self, on_date: Optional[date] = None, driver_id: Optional[int] = None) -> List[Route]:
        def matches(route: Route) -> bool:
            if on_date is not None and not filters.on_day(route.date, on_date):
                return False
            if driver_id is not None and route.assigned_driver != driver_id:
                return False
            return True

        return self.routes.find(matches)

    def get_current_route(self, driver_id: int, today: date) -> Optional[Route]:
        """Today's route for the driver, otherwise the driver's most recent one."""
        routes = self.list_routes(driver_id=driver_id)
        if not routes:
            return None
        todays = [route for route in routes if filters.on_day(route.date, today)]
        if todays:
            return todays[0]
        return max(routes, key=lambda route: filters.normalize(route.date))

    # Stations

    def list_stations(self, station_type: Optional[str] = None) -> List[Station]:
        if station_type is None:
            return self.stations.all()
        return self.stations.find(lambda station: station.type == station_type)

    def get_nearby_stations(
        self,
        lat: float,
        lng: float,
        radius_km: float,
        station_type: Optional[str] = None,
    ) -> List[Station]:
        return geo.nearby(self.list_stations(station_type), lat, lng, radius_km)

    # Calendar

    def list_calendar_events(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        driver_id: Optional[int] = None,
        event_type: Optional[str] = None,
    ) -> List[CalendarEvent]:
        def matches(event: CalendarEvent) -> bool:
            if event.user_id != user_id:
                return False
            if not filters.in_range(event.start_time, start, end):
                return False
            if driver_id is not None and event.assigned_driver != driver_id:
                return False
            if event_type is not None and event.event_type != event_type:
                return False
            return True

        return sorted(self.calendar_events.find(matches), key=lambda e: filters.normalize(e.start_time))


def get_storage(request: Request) -> MemStorage:
    """FastAPI dependency returning the store attached to the running app."""
    return request.app.state.storage
