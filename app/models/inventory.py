from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryLog(Base):
    """
    Append-only ledger of stock movements.

    Rows are written in the same transaction as the stock change they
    describe and are never updated or deleted afterwards.
    """
    __tablename__ = "inventory_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Plain references: history must outlive the referenced rows
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="NO ACTION"),
        nullable=False,
        index=True,
    )

    order_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Stock Tracking
    old_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)  # positive=in, negative=out

    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    # Set in Python so entries written in one transaction keep their order
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "new_quantity = old_quantity + quantity_change", name="ck_inventory_logs_balance"
        ),
        CheckConstraint("quantity_change <> 0", name="ck_inventory_logs_non_zero"),
    )

    product = relationship("Product", back_populates="inventory_logs")

    @classmethod
    def record(
        cls,
        *,
        product_id: int,
        old_quantity: int,
        quantity_change: int,
        reason: str,
        order_id: int | None = None,
    ) -> "InventoryLog":
        """Build a ledger entry whose new quantity is derived, never supplied."""
        if quantity_change == 0:
            raise ValueError("A ledger entry must record a non-zero change")

        new_quantity = old_quantity + quantity_change
        if new_quantity < 0:
            raise ValueError(
                f"Ledger entry for product {product_id} would leave negative stock"
            )

        return cls(
            product_id=product_id,
            order_id=order_id,
            old_quantity=old_quantity,
            quantity_change=quantity_change,
            new_quantity=new_quantity,
            reason=reason,
            timestamp=_utcnow(),
        )
