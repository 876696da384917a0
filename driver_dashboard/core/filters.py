# driver_dashboard/core/filters.py
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence, TypeVar

from driver_dashboard.models import InventoryItem

T = TypeVar("T")

INVENTORY_SORT_FIELDS = ("name", "quantity", "weight")


def normalize(value: datetime) -> datetime:
    """Naive UTC view of a datetime so aware and naive values compare."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def on_day(value: datetime, day: date) -> bool:
    return normalize(value).date() == day


def in_range(value: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    """Inclusive on both ends; a missing bound is open."""
    value = normalize(value)
    if start is not None and value < normalize(start):
        return False
    if end is not None and value > normalize(end):
        return False
    return True


def filter_inventory(
    items: Iterable[InventoryItem],
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[InventoryItem]:
    """
    Exact category match plus a case-insensitive substring search over
    name, category and destination.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for item in items:
        if category and item.category != category:
            continue
        if needle:
            haystacks = [item.name, item.category, item.destination or ""]
            if not any(needle in text.lower() for text in haystacks):
                continue
        result.append(item)
    return result


def sort_records(records: Sequence[T], field: str, descending: bool = False) -> List[T]:
    if field not in INVENTORY_SORT_FIELDS:
        raise ValueError(f"Cannot sort by '{field}'. Expected one of: {', '.join(INVENTORY_SORT_FIELDS)}")

    def key(record):
        value = getattr(record, field)
        return value.lower() if isinstance(value, str) else value

    return sorted(records, key=key, reverse=descending)
