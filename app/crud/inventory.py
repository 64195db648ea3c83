from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.inventory import InventoryLog


class InventoryLogCRUD:
    """Insert and read access to the ledger. There is no update or delete."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def add_many(self, entries: Iterable[InventoryLog]) -> None:
        self.session.add_all(list(entries))

    async def get(self, log_id: int) -> InventoryLog | None:
        return await self.session.get(InventoryLog, log_id)

    async def list_for_product(
        self,
        product_id: int,
        *,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[InventoryLog]:
        stmt = select(InventoryLog).where(InventoryLog.product_id == product_id)

        if date_from is not None:
            stmt = stmt.where(InventoryLog.timestamp >= date_from)

        if date_to is not None:
            stmt = stmt.where(InventoryLog.timestamp <= date_to)

        stmt = stmt.order_by(InventoryLog.timestamp.desc(), InventoryLog.id.desc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
