"""
User schemas for request/response validation.
"""

from datetime import datetime
from pydantic import EmailStr, Field

from quotebuilder.schemas.base import BaseSchema


class UserUpdate(BaseSchema):
    """Schema for updating the caller's own profile."""

    full_name: str | None = Field(None, min_length=2, max_length=255)
    phone: str | None = Field(None, max_length=50)


class UserRoleUpdate(BaseSchema):
    """Schema for assigning a role to a user."""

    role_id: int | None


class PasswordChangeRequest(BaseSchema):
    """Password change request schema."""

    current_password: str
    new_password: str = Field(..., min_length=8)


class UserResponse(BaseSchema):
    """User response schema (public data)."""

    id: int
    email: EmailStr
    full_name: str
    phone: str | None
    role_id: int | None
    role_name: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
