from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.order import Order


class OrderCRUD:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, order_id: int) -> Order | None:
        result = await self.session.execute(
            select(Order)
            .options(selectinload(Order.details))
            .where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, order_id: int) -> Order | None:
        """Load an order with its lines and lock the order row until commit."""
        result = await self.session.execute(
            select(Order)
            .options(selectinload(Order.details))
            .where(Order.id == order_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def add(self, order: Order) -> Order:
        self.session.add(order)
        # flush so the id is populated; commit belongs to the unit of work
        await self.session.flush()
        return order
