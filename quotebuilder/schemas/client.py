"""
Client schemas for request/response validation.
"""

from pydantic import EmailStr, Field

from quotebuilder.schemas.base import BaseSchema, PaginatedResponse, TimestampSchema


class ClientBase(BaseSchema):
    """Base client schema with common fields."""

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=255)
    address: str | None = None
    notes: str | None = None


class ClientCreate(ClientBase):
    """Schema for creating a new client."""
    pass


class ClientUpdate(BaseSchema):
    """Schema for updating a client."""

    name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=255)
    address: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class ClientResponse(ClientBase, TimestampSchema):
    """Client response schema."""

    id: int
    is_active: bool


class ClientListResponse(PaginatedResponse):
    """Paginated client list response."""

    items: list[ClientResponse]
