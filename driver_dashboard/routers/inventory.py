# driver_dashboard/routers/inventory.py
import logging
from io import BytesIO
from typing import Any, Dict, List, Literal, Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from pydantic import ValidationError

from driver_dashboard.config import settings
from driver_dashboard.core import stats
from driver_dashboard.core.security import get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventorySummary,
    User,
)

logger = logging.getLogger(__name__)
router = APIRouter()

REQUIRED_EXCEL_COLUMNS = ["name", "category", "quantity", "weight"]
OPTIONAL_EXCEL_COLUMNS = ["destination", "location", "description", "deadline"]


def get_owned_item(item_id: int, user: User, storage: MemStorage) -> InventoryItem:
    item = storage.inventory.get(item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Inventory item {item_id} not found")
    if item.user_id != user.id:
        logger.warning(f"User {user.id} tried to access inventory item {item_id} owned by {item.user_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return item


@router.get("", response_model=List[InventoryItem], summary="List the driver's inventory")
def list_inventory(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[Literal["name", "quantity", "weight"]] = None,
    order: Literal["asc", "desc"] = "asc",
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    return storage.list_inventory(
        user.id,
        category=category,
        search=search,
        sort_by=sort_by,
        descending=order == "desc",
    )


@router.get("/summary", response_model=InventorySummary, summary="Totals and truck load for the driver's inventory")
def inventory_summary(user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    return stats.inventory_summary(storage.list_inventory(user.id), settings.TRUCK_CAPACITY_KG)


@router.post("", response_model=InventoryItem, status_code=status.HTTP_201_CREATED, summary="Add an inventory item")
def create_inventory_item(
    payload: InventoryItemCreate,
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    item = storage.inventory.insert({**payload.model_dump(), "user_id": user.id})
    logger.info(f"Inventory item {item.id} '{item.name}' added for user {user.id}")
    return item


@router.get("/{item_id}", response_model=InventoryItem)
def get_inventory_item(item_id: int, user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    return get_owned_item(item_id, user, storage)


@router.put("/{item_id}", response_model=InventoryItem)
def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
):
    get_owned_item(item_id, user, storage)
    return storage.inventory.replace(item_id, payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, user: User = Depends(get_current_user), storage: MemStorage = Depends(get_storage)):
    get_owned_item(item_id, user, storage)
    storage.inventory.delete(item_id)
    logger.info(f"Inventory item {item_id} deleted by user {user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/upload-excel", summary="Import inventory items from an Excel file")
async def upload_inventory_excel(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    storage: MemStorage = Depends(get_storage),
) -> Dict[str, Any]:
    if not file.filename or not file.filename.endswith(('.xlsx', '.xls')):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload an Excel file (.xlsx or .xls).")

    try:
        contents = await file.read()
        excel_data = pd.read_excel(BytesIO(contents))
    except Exception as e:
        logger.error(f"Error reading Excel file: {e}")
        raise HTTPException(status_code=400, detail=f"Error processing Excel file: {str(e)}")

    missing_columns = [col for col in REQUIRED_EXCEL_COLUMNS if col not in excel_data.columns]
    if missing_columns:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required columns in Excel file: {', '.join(missing_columns)}",
        )

    added: List[InventoryItem] = []
    errors: List[Dict[str, Any]] = []

    for index, row in excel_data.iterrows():
        # Excel row numbers are 1-based and the header takes row 1
        row_number = index + 2
        record = {}
        for column in REQUIRED_EXCEL_COLUMNS + OPTIONAL_EXCEL_COLUMNS:
            if column not in excel_data.columns or pd.isna(row[column]):
                continue
            value = row[column]
            if isinstance(value, pd.Timestamp):
                value = value.to_pydatetime()
            elif hasattr(value, "item"):
                # numpy scalar
                value = value.item()
            if column == "quantity" and isinstance(value, float) and value.is_integer():
                value = int(value)
            record[column] = value

        missing_fields = [field for field in REQUIRED_EXCEL_COLUMNS if field not in record]
        if missing_fields:
            errors.append({"row": row_number, "error": f"Missing data for fields: {', '.join(missing_fields)}"})
            continue

        try:
            payload = InventoryItemCreate.model_validate(record)
        except ValidationError as e:
            errors.append({
                "row": row_number,
                "error": "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
            })
            continue

        added.append(storage.inventory.insert({**payload.model_dump(), "user_id": user.id}))

    logger.info(f"Excel import for user {user.id}: {len(added)} added, {len(errors)} rejected")
    return {
        "message": f"Processed Excel file. Added {len(added)} items.",
        "added_items": [item.model_dump(mode="json") for item in added],
        "errors": errors,
    }
