"""JWT helpers"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import jwt

from app.config import get_settings

settings = get_settings()


def create_access_token(
    user_id: UUID, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token for a user.

    Args:
        user_id: User UUID stored in the ``sub`` claim
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    expire = datetime.now(timezone.utc) + expires_delta
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        JWTError: If the token is invalid or expired
    """
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
