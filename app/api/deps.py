"""Dependency injection (auth, db)"""

from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError, AuthenticationError
from app.core.security import verify_token
from app.database import get_db
from app.models.user import User
from app.repositories.user_repository import UserRepository

# Tokens are issued by the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        token: JWT access token
        db: Database session

    Returns:
        Current user

    Raises:
        AuthenticationError: If token is invalid or the user is unknown
        AccessDeniedError: If the user is inactive
    """
    try:
        payload = verify_token(token)
        user_id_str: str = payload.get("sub")

        if user_id_str is None:
            raise AuthenticationError("Could not validate credentials")

        user_id = UUID(user_id_str)

    except (JWTError, ValueError):
        raise AuthenticationError("Could not validate credentials")

    user = await UserRepository.get_by_id(db, user_id)

    if user is None:
        raise AuthenticationError("Could not validate credentials")

    if not user.is_active:
        raise AccessDeniedError("Inactive user")

    return user
