"""Pydantic schemas for authentication endpoints"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request schema for applicant self-registration.

    Self-registered accounts always get the ``user`` role.
    """
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response schema for successful login.

    Attributes:
        access_token: JWT access token
        token_type: Token type (always "bearer")
        expires_in: Token expiry in seconds
    """
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600


class UserResponse(BaseModel):
    """User information response (excludes password_hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime


class MeResponse(BaseModel):
    """Response schema for GET /auth/me.

    ``role`` is the role resolved for this request, which may differ from the
    role stored when the token was issued.
    """
    user: UserResponse
    role: str
