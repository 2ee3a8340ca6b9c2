"""
Authentication Schemas
Pydantic models for auth requests and responses.
"""
from pydantic import BaseModel, Field
from uuid import UUID


class LoginRequest(BaseModel):
    """Login credentials."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User data for API responses."""
    id: UUID
    username: str
    full_name: str | None
    is_admin: bool

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Issued access token with the user it belongs to."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
