import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.roles import UserRole
from app.db.base import Base


class User(Base):
    """
    Identity record owned by the identity service.

    The order engine only reads it, to attribute ledger entries
    to a human-readable actor.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True, index=True
    )

    username: Mapped[str | None] = mapped_column(
        String(150), unique=True, nullable=True
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_roles",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=UserRole.CUSTOMER,
        index=True,
    )

    # Account state
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def display_name(self) -> str:
        """Email, else username, else the raw id."""
        return self.email or self.username or str(self.id)
