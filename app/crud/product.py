from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product


class ProductCRUD:
    """
    Catalog lookups and the only code paths allowed to touch
    `products.stock_quantity`.

    Stock changes are single UPDATE statements evaluated by the database,
    never a read-modify-write in Python, so concurrent units of work
    cannot lose each other's updates.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, product_id: int) -> Product | None:
        """Fetch a product by ID."""
        return await self.session.get(Product, product_id)

    async def get_many(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Fetch products keyed by id; missing ids are simply absent."""
        ids = list(product_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(Product).where(Product.id.in_(ids))
        )
        return {product.id: product for product in result.scalars().all()}

    async def get_stock_quantity(self, product_id: int) -> int | None:
        """Read the stock column straight from the database (no identity map)."""
        result = await self.session.execute(
            select(Product.stock_quantity).where(Product.id == product_id)
        )
        return result.scalar_one_or_none()

    async def reserve_stock(self, *, product_id: int, quantity: int) -> int:
        """
        Decrement stock by `quantity` only if at least that much is on hand.

        Returns the number of rows affected: 1 when the reservation went
        through, 0 when stock was insufficient (or the product is gone).
        Rolling back is left to the caller.
        """
        stmt = (
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock_quantity >= quantity,
            )
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def restore_stock(self, *, product_id: int, quantity: int) -> int:
        """Unconditionally add `quantity` back; returns rows affected."""
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
