"""
Authentication Router
Handles login, logout, and the current operator.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_import.config import settings
from roster_import.database import get_db
from roster_import.dependencies.auth import AUTH_COOKIE_NAME, get_current_active_user
from roster_import.models.user import User
from roster_import.schemas.auth import LoginRequest, TokenResponse, UserResponse
from roster_import.services.auth_service import create_access_token, verify_password


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate user, set the JWT cookie and return the token."""
    # Find user
    result = await db.execute(
        select(User).where(User.username == data.username)
    )
    user = result.scalar_one_or_none()

    # Verify credentials
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.warning("Failed login for %s", data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is deactivated"
        )

    # Update last login
    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    token = create_access_token(
        data={"sub": str(user.id), "username": user.username}
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=60 * 60 * settings.jwt_expire_hours
    )
    logger.info("User %s logged in", user.username)

    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response):
    """Clear the JWT cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME)


@router.get("/me", response_model=UserResponse)
async def read_current_user(
    current_user: User = Depends(get_current_active_user)
):
    """Get the logged-in operator."""
    return current_user
