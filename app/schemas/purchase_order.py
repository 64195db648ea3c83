from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import PurchaseOrderStatus


class PurchaseOrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class PurchaseOrderCreate(BaseModel):
    """Draft of a supplier purchase order; the reference number is assigned on save."""
    supplier_name: str = Field(..., min_length=1, max_length=255)
    note: str | None = None
    items: list[PurchaseOrderItemCreate] = Field(default_factory=list)


class PurchaseOrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderResponse(BaseModel):
    id: int
    purchase_order_number: str
    supplier_name: str
    note: str | None
    status: PurchaseOrderStatus
    total_amount: Decimal
    created_by: str
    created_at: datetime
    items: list[PurchaseOrderItemResponse]

    model_config = ConfigDict(from_attributes=True)
