import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import NotFoundError, PurchaseOrderError
from app.crud.product import ProductCRUD
from app.crud.purchase_order import PurchaseOrderCRUD
from app.db.enums import PurchaseOrderStatus
from app.db.sessions import unit_of_work
from app.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from app.schemas.purchase_order import PurchaseOrderCreate

logger = logging.getLogger(__name__)


def format_purchase_order_number(purchase_order_id: int) -> str:
    return f"PN-{purchase_order_id:05d}"


class PurchaseOrderService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_purchase_order(
        self,
        draft: PurchaseOrderCreate,
        actor: str | None = None,
    ) -> PurchaseOrder:
        """
        Persist a supplier purchase order and stamp its reference number.

        The number is derived from the database-assigned id, so the row is
        inserted, flushed, stamped and flushed again inside one transaction.
        """
        total = sum(
            (item.unit_price * item.quantity for item in draft.items), Decimal("0.00")
        )

        try:
            async with unit_of_work(self.session_factory) as session:
                product_ids = {item.product_id for item in draft.items}
                known = await ProductCRUD(session).get_many(product_ids)
                missing = sorted(product_ids - known.keys())
                if missing:
                    raise NotFoundError(
                        f"Products not found: {', '.join(str(pid) for pid in missing)}"
                    )

                crud = PurchaseOrderCRUD(session)

                purchase_order = await crud.add(
                    PurchaseOrder(
                        supplier_name=draft.supplier_name,
                        note=draft.note,
                        status=PurchaseOrderStatus.ISSUED,
                        total_amount=total,
                        created_by=actor or "system",
                        items=[
                            PurchaseOrderItem(
                                product_id=item.product_id,
                                quantity=item.quantity,
                                unit_price=item.unit_price,
                            )
                            for item in draft.items
                        ],
                    )
                )

                purchase_order.purchase_order_number = format_purchase_order_number(
                    purchase_order.id
                )
                await session.flush()
                purchase_order_id = purchase_order.id

        except NotFoundError:
            raise

        except Exception as e:
            logger.exception(f"CreatePurchaseOrder failed - rolled back: {e}")
            raise PurchaseOrderError(str(e)) from e

        logger.info(
            f"Purchase order {format_purchase_order_number(purchase_order_id)} issued",
            extra={"purchase_order_id": purchase_order_id},
        )
        return await self.get_purchase_order(purchase_order_id)

    async def get_purchase_order(self, purchase_order_id: int) -> PurchaseOrder:
        async with self.session_factory() as session:
            purchase_order = await PurchaseOrderCRUD(session).get_by_id(purchase_order_id)

        if purchase_order is None:
            raise NotFoundError(f"Purchase order {purchase_order_id} not found")

        return purchase_order
