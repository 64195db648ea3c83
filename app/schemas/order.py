from decimal import Decimal
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import OrderStatus


class CartLine(BaseModel):
    """A cart line as presented at checkout; price and name are snapshotted."""
    product_id: int
    product_name: str | None = Field(default=None, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(..., gt=0, json_schema_extra={"example": 2})

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class PlaceOrderRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=30)
    shipping_address: str = Field(..., min_length=1, max_length=500)
    items: list[CartLine]
    total_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class OrderResult(BaseModel):
    """Outcome of an order-engine operation; failures never escape as exceptions."""
    success: bool
    order_id: int | None = None
    error_message: str | None = None
    # "validation" | "not_found" | "conflict" | "error"
    error_kind: str | None = None

    @classmethod
    def ok(cls, order_id: int) -> "OrderResult":
        return cls(success=True, order_id=order_id)

    @classmethod
    def fail(cls, message: str, kind: str = "error") -> "OrderResult":
        return cls(success=False, error_message=message, error_kind=kind)


class OrderDetailResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: int
    customer_name: str
    phone_number: str
    shipping_address: str
    status: OrderStatus
    total_amount: Decimal
    user_id: UUID | None
    created_at: datetime
    details: list[OrderDetailResponse]

    model_config = ConfigDict(from_attributes=True)
