import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    NotFoundError,
    ProductNotFoundError,
)
from app.crud.inventory import InventoryLogCRUD
from app.crud.product import ProductCRUD
from app.db.sessions import unit_of_work
from app.models.inventory import InventoryLog

logger = logging.getLogger(__name__)


class InventoryService:
    """Ledger queries and manual stock corrections."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_logs(
        self,
        product_id: int,
        *,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[InventoryLog]:
        async with self.session_factory() as session:
            return await InventoryLogCRUD(session).list_for_product(
                product_id, date_from=date_from, date_to=date_to
            )

    async def get_log(self, log_id: int) -> InventoryLog:
        async with self.session_factory() as session:
            log = await InventoryLogCRUD(session).get(log_id)

        if log is None:
            raise NotFoundError(f"Inventory log {log_id} not found")

        return log

    async def adjust_stock(
        self,
        *,
        product_id: int,
        quantity_change: int,
        reason: str,
        actor: str | None = None,
    ) -> InventoryLog:
        """
        Apply a manual stock correction and its ledger entry atomically.

        Write-offs go through the same conditional decrement as sales,
        so an adjustment can never push stock below zero.
        """
        if quantity_change == 0:
            raise InvalidRequestError("Stock adjustment must change the quantity.")

        who = actor or "system"

        async with unit_of_work(self.session_factory) as session:
            product_crud = ProductCRUD(session)

            product = await product_crud.get(product_id)
            if product is None:
                raise ProductNotFoundError([product_id])

            if quantity_change < 0:
                affected = await product_crud.reserve_stock(
                    product_id=product_id, quantity=-quantity_change
                )
                if affected == 0:
                    available = await product_crud.get_stock_quantity(product_id) or 0
                    raise InsufficientStockError(product.name, available, -quantity_change)
            else:
                await product_crud.restore_stock(
                    product_id=product_id, quantity=quantity_change
                )

            new_quantity = await product_crud.get_stock_quantity(product_id)

            entry = InventoryLog.record(
                product_id=product_id,
                old_quantity=new_quantity - quantity_change,
                quantity_change=quantity_change,
                reason=f"Adjustment by {who}: {reason}",
            )
            InventoryLogCRUD(session).add_many([entry])
            await session.flush()

        logger.info(
            f"Stock adjusted for product {product_id}: change {quantity_change}, new stock={entry.new_quantity}"
        )
        return entry
