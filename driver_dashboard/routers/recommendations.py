# driver_dashboard/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from typing import Literal

from driver_dashboard.config import settings
from driver_dashboard.core import filters, stats
from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import RecommendationList, User
from driver_dashboard.services import llm_client
from driver_dashboard.services.llm_client import (
    LLMError,
    LLMNotConfiguredError,
    LLMOutputError,
    LLMUpstreamError,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def llm_http_exception(error: LLMError) -> HTTPException:
    """Maps a model failure to the HTTP error the client sees."""
    if isinstance(error, LLMNotConfiguredError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(error)},
        )
    if isinstance(error, LLMUpstreamError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "AI service request failed", "upstream_message": error.message},
        )
    if isinstance(error, LLMOutputError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": error.message, "raw": error.raw},
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": str(error)},
    )


def build_context(kind: str, user: User, storage: MemStorage) -> dict:
    today = filters.utc_today()
    context = {"driver": {"name": user.full_name, "driver_id": user.driver_id}, "date": today.isoformat()}

    if kind in ("inventory", "general"):
        items = storage.list_inventory(user.id)
        context["inventory"] = [item.model_dump(mode="json", exclude={"user_id"}) for item in items]
        context["load"] = stats.inventory_summary(items, settings.TRUCK_CAPACITY_KG).model_dump()
    if kind in ("route", "general"):
        route = storage.get_current_route(user.id, today)
        if route is not None:
            context["route"] = route.model_dump(mode="json")
            context["deliveries"] = [
                d.model_dump(mode="json") for d in storage.get_deliveries_by_ids(route.waypoints)
            ]
    if kind in ("schedule", "general"):
        context["schedule"] = [
            event.model_dump(mode="json", exclude={"user_id"})
            for event in storage.list_calendar_events(user.id)
        ]
        context["deliveries_today"] = [
            d.model_dump(mode="json") for d in storage.list_deliveries(on_date=today, driver_id=user.id)
        ]
    return context


@router.get("", response_model=RecommendationList, summary="AI recommendations for the driver")
def get_recommendations(
    type: Literal["route", "schedule", "inventory", "general"] = "general",
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    logger.info(f"Recommendations requested: {type} for user {user.id}")
    context = build_context(type, user, storage)
    try:
        recommendations = llm_client.get_recommendations(type, context)
    except LLMError as e:
        raise llm_http_exception(e)
    return RecommendationList(recommendations=recommendations)
