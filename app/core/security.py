import logging
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from app.core.config import settings
from app.core.exceptions import AuthenticationFailed


# Initialize logger for tracking token events
logger = logging.getLogger(__name__)


# ----- JWT --------

def create_access_token(user) -> str:
    """
    Generates a short-lived JWT Access Token.

    Token issuance belongs to the identity service; this helper exists so
    collaborators (and the test suite) can mint tokens this API accepts.
    
    Payload:
    - sub: The User UUID (Standard subject claim)
    - type: The type which is access token
    - role: The role of the user
    - exp: Expiration timestamp
    """

    now = datetime.now(timezone.utc)
    expire = now + timedelta(
        minutes=settings.access_token_expire_minutes
    )

    # Ensure user.id is a string as UUID objects aren't JSON serializable by default
    payload = {
        "sub": str(user.id), 
        "type": "access",
        "role": user.role.value,
        "iat": now, 
        "exp": expire
    }
    
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    logger.debug(f"JWT: Access token created for user {user.id}")
    return token


def decode_access_token(token: str) -> dict:
    """Decodes and validates an access token, returning its claims."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"leeway": 30}
        )
    except JWTError:
        logger.warning("JWT Decode Failed")
        raise AuthenticationFailed("Token is invalid or has expired")

    if not payload.get("sub"):
        raise AuthenticationFailed("Invalid authentication token")

    if payload.get("type") != "access":
        raise AuthenticationFailed("Invalid token type")

    return payload
