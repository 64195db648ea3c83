from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class InventoryLogResponse(BaseModel):
    id: int
    product_id: int
    order_id: int | None
    old_quantity: int
    quantity_change: int
    new_quantity: int
    reason: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class StockAdjustmentRequest(BaseModel):
    """Manual warehouse correction: positive receives stock, negative writes it off."""
    product_id: int
    quantity_change: int = Field(..., json_schema_extra={"example": -3})
    reason: str = Field(..., min_length=1, max_length=400)

    @field_validator("quantity_change")
    @classmethod
    def must_not_be_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity_change must not be zero")
        return v
