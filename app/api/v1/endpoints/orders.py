from fastapi import APIRouter, Depends, HTTPException
from starlette import status
from app.core.deps import get_current_staff, get_optional_user, get_service
from app.core.exceptions import OrderNotFoundError
from app.models.user import User
from app.schemas.order import OrderResponse, OrderResult, PlaceOrderRequest
from app.services.order_service import OrderService

router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)

_ERROR_STATUS = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
}


def _raise_for_result(result: OrderResult) -> None:
    if result.success:
        return
    raise HTTPException(
        status_code=_ERROR_STATUS.get(result.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=result.error_message,
    )


# PLACE ORDER (guest checkout allowed)
@router.post("", response_model=OrderResult, status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: PlaceOrderRequest,
    current_user: User | None = Depends(get_optional_user),
    service: OrderService = Depends(get_service(OrderService)),
):
    result = await service.place_order(
        user_id=current_user.id if current_user else None,
        customer_name=payload.customer_name,
        phone_number=payload.phone_number,
        shipping_address=payload.shipping_address,
        cart_lines=payload.items,
        total_amount=payload.total_amount,
    )
    _raise_for_result(result)
    return result


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_staff),
    service: OrderService = Depends(get_service(OrderService)),
):
    try:
        return await service.get_order(order_id)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post("/{order_id}/cancel", response_model=OrderResult)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_staff),
    service: OrderService = Depends(get_service(OrderService)),
):
    result = await service.cancel_order(order_id, actor=current_user.display_name)
    _raise_for_result(result)
    return result
