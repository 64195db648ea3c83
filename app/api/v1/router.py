from fastapi import APIRouter

from app.api.v1.endpoints import (
    inventory,
    orders,
    purchase_orders,
)

router = APIRouter()

router.include_router(orders.router)

router.include_router(purchase_orders.router)

router.include_router(inventory.router)
