from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.purchase_order import PurchaseOrder


class PurchaseOrderCRUD:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, purchase_order_id: int) -> PurchaseOrder | None:
        result = await self.session.execute(
            select(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .where(PurchaseOrder.id == purchase_order_id)
        )
        return result.scalar_one_or_none()

    async def add(self, purchase_order: PurchaseOrder) -> PurchaseOrder:
        self.session.add(purchase_order)
        await self.session.flush()
        return purchase_order
