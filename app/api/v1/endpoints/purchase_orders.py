from fastapi import APIRouter, Depends, HTTPException
from starlette import status
from app.core.deps import get_current_staff, get_service
from app.core.exceptions import NotFoundError, PurchaseOrderError
from app.models.user import User
from app.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderResponse
from app.services.purchase_order_service import PurchaseOrderService

router = APIRouter(
    prefix="/purchase-orders",
    tags=["Purchase Orders"],
)


@router.post("", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    current_user: User = Depends(get_current_staff),
    service: PurchaseOrderService = Depends(get_service(PurchaseOrderService)),
):
    """
    Warehouse staff issue a purchase order; the PN- number is assigned by the server.
    """
    try:
        return await service.create_purchase_order(payload, actor=current_user.display_name)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PurchaseOrderError:
        # Driver detail stays in the server log
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Purchase order could not be created.",
        )


@router.get("/{purchase_order_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    purchase_order_id: int,
    current_user: User = Depends(get_current_staff),
    service: PurchaseOrderService = Depends(get_service(PurchaseOrderService)),
):
    try:
        return await service.get_purchase_order(purchase_order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
