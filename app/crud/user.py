import logging
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user import User

# Initialize logger for tracking identity lookups
logger = logging.getLogger(__name__)


class UserCRUD:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def resolve_display_name(self, user_id: UUID | None) -> str:
        """
        Human-readable actor for ledger reasons:
        email, else username, else the raw id, else "guest".
        """
        if user_id is None:
            return "guest"

        user = await self.get_by_id(user_id)
        if user is None:
            logger.debug(f"Identity: user {user_id} not found, using raw id.")
            return str(user_id)

        return user.display_name
