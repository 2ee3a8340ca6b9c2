"""
Authentication Dependencies
FastAPI dependencies for route protection.
"""
import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_import.database import get_db
from roster_import.models.user import User
from roster_import.services.auth_service import decode_token


# Cookie name for JWT token
AUTH_COOKIE_NAME = "access_token"


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


def get_request_token(request: Request) -> Optional[str]:
    """Read the JWT from the auth cookie, falling back to a Bearer header."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token

    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Extract and validate the JWT, return the current user.

    Raises HTTPException 401 if not authenticated.
    """
    token = get_request_token(request)
    if not token:
        raise _unauthorized()

    # Decode token
    payload = decode_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = uuid.UUID(str(payload.get("sub", "")))
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    # Get user from database
    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise _unauthorized()

    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    """
    Ensure the current user is active.

    Raises HTTPException if user is inactive.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )
    return current_user
