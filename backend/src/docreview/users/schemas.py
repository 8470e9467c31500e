"""Pydantic schemas for reviewer account management endpoints.

All schemas exclude password_hash (never returned in API responses).
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ReviewerCreate(BaseModel):
    """Request schema for creating a reviewer account (POST /users).

    Admins may create junior reviewers and compliance officers; compliance
    officers may create junior reviewers only.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "alice@example.com",
                "name": "Alice",
                "role": "junior_reviewer",
                "password": "SecurePass123",
            }
        }
    )

    email: EmailStr = Field(..., description="Email address (unique, case-insensitive)")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    role: str = Field(
        ...,
        pattern="^(user|junior_reviewer|compliance_officer|admin)$",
        description="Role to assign (must be one the caller may manage)",
    )
    password: str = Field(..., min_length=8, max_length=128)


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime


class AccountListResponse(BaseModel):
    users: List[AccountResponse]
    total: int
