import logging
import uuid
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Callable, Type, TypeVar

from app.core.exceptions import AuthenticationFailed, NotAuthorized
from app.core.roles import STAFF_ROLES
from app.core.security import decode_access_token
from app.crud.user import UserCRUD
from app.db.sessions import AsyncSessionLocal
from app.models.user import User


# Initialize logger for security events
logger = logging.getLogger(__name__)

# HTTPBearer is used for "Authorization: Bearer <token>" headers
oauth2_scheme = HTTPBearer(auto_error=False)

T = TypeVar("T")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


async def get_optional_user(
    token: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> User | None:
    """
    Resolves the bearer token to a user, or None for anonymous requests.
    A token that is present but invalid is still rejected.
    """
    if not token:
        return None

    payload = decode_access_token(token.credentials)

    # Convert the string user_id into a proper UUID object.
    try:
        user_uuid = uuid.UUID(payload["sub"])
    except (ValueError, AttributeError):
        raise AuthenticationFailed("Invalid user identifier format")

    async with session_factory() as session:
        user = await UserCRUD(session).get_by_id(user_uuid)

    if not user:
        logger.warning(f"Auth Failure: User {user_uuid} not found in database.")
        raise AuthenticationFailed("User not found")

    if not user.is_active:
        raise NotAuthorized("User account disabled")

    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationFailed("Not authenticated")
    return user


# ROLE BASED ACCESS CONTROL (SUB DEPENDENCIES OF GET CURRENT USER)

def get_current_staff(current_user: User = Depends(get_current_user)) -> User:
    """Require admin or warehouse role"""
    if current_user.role not in STAFF_ROLES:
        raise NotAuthorized("Staff access required")
    return current_user


# SERVICE DEPENDENCIES

def get_service(service_cls: Type[T]) -> Callable[..., T]:
    def _get(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ) -> T:
        return service_cls(session_factory)

    return _get
