"""
Pydantic schemas for request/response validation.
"""

from quotebuilder.schemas.user import (
    UserUpdate,
    UserRoleUpdate,
    UserResponse,
    PasswordChangeRequest,
)
from quotebuilder.schemas.role import (
    RoleCreate,
    RoleResponse,
    RolePermissionsUpdate,
)
from quotebuilder.schemas.client import (
    ClientCreate,
    ClientUpdate,
    ClientResponse,
)
from quotebuilder.schemas.product import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from quotebuilder.schemas.template import (
    TemplateConfig,
    TemplateCreate,
    TemplateResponse,
)
from quotebuilder.schemas.quote import (
    QuoteDraft,
    QuoteCreate,
    QuoteUpdate,
    QuoteResponse,
    QuotePreviewResponse,
    QuoteRevisionResponse,
)
from quotebuilder.schemas.auth import (
    TokenPair,
    LoginRequest,
    RegisterRequest,
    RefreshTokenRequest,
)

__all__ = [
    # User
    "UserUpdate",
    "UserRoleUpdate",
    "UserResponse",
    "PasswordChangeRequest",
    # Role
    "RoleCreate",
    "RoleResponse",
    "RolePermissionsUpdate",
    # Client
    "ClientCreate",
    "ClientUpdate",
    "ClientResponse",
    # Catalog
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    # Template
    "TemplateConfig",
    "TemplateCreate",
    "TemplateResponse",
    # Quote
    "QuoteDraft",
    "QuoteCreate",
    "QuoteUpdate",
    "QuoteResponse",
    "QuotePreviewResponse",
    "QuoteRevisionResponse",
    # Auth
    "TokenPair",
    "LoginRequest",
    "RegisterRequest",
    "RefreshTokenRequest",
]
