import uuid

from sqlalchemy import Integer, Numeric, DateTime, String, func, Enum
from sqlalchemy.orm import relationship, Mapped, mapped_column
from decimal import Decimal
from datetime import datetime
from sqlalchemy.dialects.postgresql import UUID
from app.db.base import Base
from app.db.enums import OrderStatus



class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Customer contact, captured at checkout
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)

    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)

    shipping_address: Mapped[str] = mapped_column(String(500), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    status: Mapped[OrderStatus] = mapped_column(
        Enum(
            OrderStatus,
            name="order_status_enum",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    # NULL for guest checkout; identity lives with the auth service, so no FK
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        index=True,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


    # Relationships
    details = relationship(
        "OrderDetail",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderDetail.id",
    )
