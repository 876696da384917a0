# driver_dashboard/routers/dashboard.py
from fastapi import APIRouter, Depends

from driver_dashboard.config import settings
from driver_dashboard.core import filters, stats
from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import DashboardStats, User

router = APIRouter()


@router.get("/stats", response_model=DashboardStats, summary="Overview numbers for today")
def dashboard_stats(user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    today = filters.utc_today()
    return stats.dashboard_stats(
        storage.list_inventory(user.id),
        storage.list_deliveries(on_date=today, driver_id=user.id),
        storage.list_routes(on_date=today, driver_id=user.id),
        capacity_kg=settings.TRUCK_CAPACITY_KG,
        average_speed_kmh=settings.AVERAGE_SPEED_KMH,
    )
