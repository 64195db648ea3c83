from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status
from app.core.deps import get_current_staff, get_service
from app.core.exceptions import NotFoundError, OrderError
from app.models.user import User
from app.schemas.inventory import InventoryLogResponse, StockAdjustmentRequest
from app.services.inventory_service import InventoryService

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
)


# LEDGER FOR ONE PRODUCT
@router.get("/logs/{product_id}", response_model=list[InventoryLogResponse])
async def list_logs(
    product_id: int,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    current_user: User = Depends(get_current_staff),
    service: InventoryService = Depends(get_service(InventoryService)),
):
    """
    Ledger entries of a product, newest first, optionally bounded by time (UTC).
    """
    return await service.list_logs(product_id, date_from=date_from, date_to=date_to)


@router.get("/log/{log_id}", response_model=InventoryLogResponse)
async def get_log(
    log_id: int,
    current_user: User = Depends(get_current_staff),
    service: InventoryService = Depends(get_service(InventoryService)),
):
    try:
        return await service.get_log(log_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/adjustments", response_model=InventoryLogResponse, status_code=status.HTTP_201_CREATED)
async def adjust_stock(
    payload: StockAdjustmentRequest,
    current_user: User = Depends(get_current_staff),
    service: InventoryService = Depends(get_service(InventoryService)),
):
    try:
        return await service.adjust_stock(
            product_id=payload.product_id,
            quantity_change=payload.quantity_change,
            reason=payload.reason,
            actor=current_user.display_name,
        )
    except OrderError as e:
        code = {
            "validation": status.HTTP_400_BAD_REQUEST,
            "not_found": status.HTTP_404_NOT_FOUND,
        }.get(e.kind, status.HTTP_409_CONFLICT)
        raise HTTPException(status_code=code, detail=e.message)
