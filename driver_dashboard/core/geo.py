# driver_dashboard/core/geo.py
import math
from typing import Iterable, List, Optional, Sequence

from driver_dashboard.models import Coordinates, Station

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = math.sin(dlat / 2) ** 2 + math.cos(math.radians(lat1)) * \
        math.cos(math.radians(lat2)) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def nearby(stations: Iterable[Station], lat: float, lng: float, radius_km: float) -> List[Station]:
    """
    Stations within `radius_km` of (lat, lng), nearest first.

    Returned records are copies with `distance` set; stored stations are left
    untouched.
    """
    in_range = []
    for station in stations:
        distance = haversine_km(lat, lng, station.coordinates.lat, station.coordinates.lng)
        if distance <= radius_km:
            in_range.append(station.model_copy(update={"distance": round(distance, 2)}))
    return sorted(in_range, key=lambda s: s.distance)


def path_distance_km(points: Sequence[Optional[Coordinates]]) -> float:
    """Sum of great-circle legs along `points`; points without coordinates are skipped."""
    known = [p for p in points if p is not None]
    total = 0.0
    for start, end in zip(known, known[1:]):
        total += haversine_km(start.lat, start.lng, end.lat, end.lng)
    return round(total, 1)
