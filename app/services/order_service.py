import logging
from collections import defaultdict
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    ConcurrentUpdateError,
    EmptyCartError,
    InsufficientStockError,
    InvalidCartError,
    InvalidStatusTransitionError,
    OrderAlreadyCancelledError,
    OrderError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from app.crud.inventory import InventoryLogCRUD
from app.crud.order import OrderCRUD
from app.crud.product import ProductCRUD
from app.crud.user import UserCRUD
from app.db.enums import OrderStatus, can_transition
from app.db.sessions import unit_of_work
from app.models.inventory import InventoryLog
from app.models.order import Order
from app.models.order_detail import OrderDetail
from app.schemas.order import CartLine, OrderResult

logger = logging.getLogger(__name__)

# Aborted by the database under concurrency: serialization failure, deadlock
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _is_retryable_conflict(exc: Exception) -> bool:
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in RETRYABLE_SQLSTATES


class OrderService:
    """
    Places and cancels orders.

    Every public operation runs in its own unit of work on a fresh session
    and reports its outcome as an `OrderResult`; expected failures and
    infrastructure faults alike are rolled back and returned, not raised.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def place_order(
        self,
        *,
        user_id: UUID | None,
        customer_name: str,
        phone_number: str,
        shipping_address: str,
        cart_lines: list[CartLine],
        total_amount: Decimal,
    ) -> OrderResult:
        lines = list(cart_lines or [])
        logger.info(
            f"PlaceOrder START user={user_id or '(guest)'} customer={customer_name!r} "
            f"total={total_amount} lines={len(lines)}"
        )

        try:
            required_by_product = self._validate_cart(lines, total_amount)
        except OrderError as e:
            logger.warning(f"PlaceOrder rejected: {e.message}")
            return OrderResult.fail(e.message, e.kind)

        try:
            async with unit_of_work(self.session_factory) as session:
                order_id = await self._place_order_in(
                    session,
                    user_id=user_id,
                    customer_name=customer_name,
                    phone_number=phone_number,
                    shipping_address=shipping_address,
                    lines=lines,
                    total_amount=total_amount,
                    required_by_product=required_by_product,
                )

        except OrderError as e:
            logger.warning(f"PlaceOrder rolled back: {e.message}")
            return OrderResult.fail(e.message, e.kind)

        except Exception as e:
            return self._fault("PlaceOrder", e)

        logger.info(f"PlaceOrder COMMIT order_id={order_id}", extra={"order_id": order_id})
        return OrderResult.ok(order_id)

    async def cancel_order(self, order_id: int, actor: str | None = None) -> OrderResult:
        who = actor or "system"
        logger.info(f"CancelOrder START order_id={order_id} by={who}", extra={"order_id": order_id})

        try:
            async with unit_of_work(self.session_factory) as session:
                await self._cancel_order_in(session, order_id=order_id, actor=who)

        except OrderError as e:
            logger.warning(f"CancelOrder rejected: {e.message}")
            return OrderResult.fail(e.message, e.kind)

        except Exception as e:
            return self._fault("CancelOrder", e)

        logger.info(f"CancelOrder COMMIT order_id={order_id}", extra={"order_id": order_id})
        return OrderResult.ok(order_id)

    async def get_order(self, order_id: int) -> Order:
        async with self.session_factory() as session:
            order = await OrderCRUD(session).get_by_id(order_id)

        if order is None:
            raise OrderNotFoundError(order_id)

        return order

    # --- internals ---

    @staticmethod
    def _validate_cart(lines: list[CartLine], total_amount: Decimal) -> dict[int, int]:
        """Check the cart before any transaction is opened; returns quantity per product."""
        if not lines:
            raise EmptyCartError()

        for line in lines:
            if line.quantity <= 0:
                raise InvalidCartError(
                    f"Quantity for product {line.product_id} must be positive."
                )

        expected_total = sum((line.line_total for line in lines), Decimal("0"))
        if Decimal(total_amount) != expected_total:
            raise InvalidCartError(
                f"Order total {total_amount} does not match cart lines total {expected_total}."
            )

        required: dict[int, int] = defaultdict(int)
        for line in lines:
            required[line.product_id] += line.quantity
        return dict(required)

    async def _place_order_in(
        self,
        session: AsyncSession,
        *,
        user_id: UUID | None,
        customer_name: str,
        phone_number: str,
        shipping_address: str,
        lines: list[CartLine],
        total_amount: Decimal,
        required_by_product: dict[int, int],
    ) -> int:
        product_crud = ProductCRUD(session)

        products = await product_crud.get_many(required_by_product)
        missing = [pid for pid in required_by_product if pid not in products]
        if missing:
            raise ProductNotFoundError(missing)

        placed_by = await UserCRUD(session).resolve_display_name(user_id)

        # Order goes in first so its id can be quoted by lines and ledger
        order = await OrderCRUD(session).add(
            Order(
                customer_name=customer_name,
                phone_number=phone_number,
                shipping_address=shipping_address,
                total_amount=total_amount,
                status=OrderStatus.PENDING,
                user_id=user_id,
            )
        )
        logger.info(f"Created order id={order.id}", extra={"order_id": order.id})

        ledger: list[InventoryLog] = []

        # Rows are locked in product id order so concurrent checkouts cannot deadlock
        for product_id, required in sorted(required_by_product.items()):
            product = products[product_id]

            affected = await product_crud.reserve_stock(
                product_id=product_id, quantity=required
            )

            if affected == 0:
                available = await product_crud.get_stock_quantity(product_id) or 0
                logger.warning(
                    f"Not enough stock for product {product_id}: "
                    f"available={available} required={required}",
                    extra={"order_id": order.id, "product_id": product_id},
                )
                raise InsufficientStockError(product.name, available, required)

            new_quantity = await product_crud.get_stock_quantity(product_id)
            old_quantity = new_quantity + required

            ledger.append(
                InventoryLog.record(
                    product_id=product_id,
                    order_id=order.id,
                    old_quantity=old_quantity,
                    quantity_change=-required,
                    reason=f"Sale - order #{order.id} by {placed_by}",
                )
            )
            logger.info(
                f"Product {product_id}: {old_quantity} -> {new_quantity} (change {-required})",
                extra={"order_id": order.id, "product_id": product_id},
            )

        # One detail per cart line, even when lines share a product
        for line in lines:
            session.add(
                OrderDetail(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=line.product_name or products[line.product_id].name,
                    price=line.price,
                    quantity=line.quantity,
                )
            )

        InventoryLogCRUD(session).add_many(ledger)
        await session.flush()

        return order.id

    async def _cancel_order_in(self, session: AsyncSession, *, order_id: int, actor: str) -> None:
        # Locked read: a concurrent cancellation waits here and then sees CANCELLED
        order = await OrderCRUD(session).get_for_update(order_id)

        if order is None:
            raise OrderNotFoundError(order_id)

        if order.status == OrderStatus.CANCELLED:
            raise OrderAlreadyCancelledError(order_id)

        if not can_transition(order.status, OrderStatus.CANCELLED):
            raise InvalidStatusTransitionError(order_id, order.status, OrderStatus.CANCELLED)

        product_crud = ProductCRUD(session)
        ledger: list[InventoryLog] = []

        # Restored per line, not per product; product id order matches placement
        for detail in sorted(order.details, key=lambda d: (d.product_id, d.id)):
            affected = await product_crud.restore_stock(
                product_id=detail.product_id, quantity=detail.quantity
            )
            if affected == 0:
                logger.info(
                    f"Product {detail.product_id} no longer exists, skipping restock",
                    extra={"order_id": order.id, "product_id": detail.product_id},
                )
                continue

            new_quantity = await product_crud.get_stock_quantity(detail.product_id)
            old_quantity = new_quantity - detail.quantity

            ledger.append(
                InventoryLog.record(
                    product_id=detail.product_id,
                    order_id=order.id,
                    old_quantity=old_quantity,
                    quantity_change=detail.quantity,
                    reason=f"Return - order #{order.id} cancelled by {actor}",
                )
            )
            logger.info(
                f"Returned {detail.quantity} to product {detail.product_id}. New stock={new_quantity}",
                extra={"order_id": order.id, "product_id": detail.product_id},
            )

        InventoryLogCRUD(session).add_many(ledger)
        order.status = OrderStatus.CANCELLED
        await session.flush()

    @staticmethod
    def _fault(operation: str, exc: Exception) -> OrderResult:
        if _is_retryable_conflict(exc):
            conflict = ConcurrentUpdateError()
            logger.warning(f"{operation} aborted by a concurrent update: {exc}")
            return OrderResult.fail(conflict.message, conflict.kind)

        logger.exception(f"{operation} failed - rolled back: {exc}")
        return OrderResult.fail(str(exc), "error")
