# driver_dashboard/core/stats.py
import logging
from typing import List

from driver_dashboard.models import DashboardStats, Delivery, InventoryItem, InventorySummary, Route

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("scheduled", "in-transit")


def load_percentage(total_weight: float, capacity_kg: float) -> int:
    if capacity_kg <= 0:
        logger.warning(f"Truck capacity is {capacity_kg}kg. Reporting load as 100%.")
        return 100
    return min(round(total_weight / capacity_kg * 100), 100)


def inventory_summary(items: List[InventoryItem], capacity_kg: float) -> InventorySummary:
    total_weight = round(sum(item.weight for item in items), 2)
    return InventorySummary(
        total_items=len(items),
        total_quantity=sum(item.quantity for item in items),
        total_weight=total_weight,
        truck_capacity=capacity_kg,
        load_percentage=load_percentage(total_weight, capacity_kg),
        categories=sorted({item.category for item in items}),
    )


def format_minutes(minutes: float) -> str:
    minutes = int(round(minutes))
    hours, rest = divmod(minutes, 60)
    if hours:
        return f"{hours}h {rest}m"
    return f"{rest}m"


def dashboard_stats(
    items: List[InventoryItem],
    deliveries: List[Delivery],
    routes: List[Route],
    capacity_kg: float,
    average_speed_kmh: float,
) -> DashboardStats:
    """Stats for the overview cards; `deliveries` and `routes` are already scoped to the day."""
    total_weight = sum(item.weight for item in items)

    distance = 0.0
    minutes = 0.0
    for route in routes:
        route_distance = route.distance or 0.0
        distance += route_distance
        if route.estimated_duration is not None:
            minutes += route.estimated_duration
        elif average_speed_kmh > 0:
            minutes += route_distance / average_speed_kmh * 60

    countable = [d for d in deliveries if d.status != "canceled"]
    delivered = [d for d in countable if d.status == "delivered"]
    completion = round(len(delivered) / len(countable) * 100) if countable else 0

    return DashboardStats(
        total_items=sum(item.quantity for item in items),
        capacity_usage=load_percentage(total_weight, capacity_kg),
        upcoming_deliveries=len([d for d in deliveries if d.status in OPEN_STATUSES]),
        total_distance=f"{distance:.1f} km",
        estimated_time=format_minutes(minutes),
        completion_percentage=completion,
    )
