"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from quotebuilder.api.v1.endpoints import (
    auth,
    users,
    roles,
    categories,
    products,
    clients,
    templates,
    quotes,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"],
)

api_router.include_router(
    roles.router,
    prefix="/roles",
    tags=["Roles"],
)

api_router.include_router(
    categories.router,
    prefix="/categories",
    tags=["Categories"],
)

api_router.include_router(
    products.router,
    prefix="/products",
    tags=["Products"],
)

api_router.include_router(
    clients.router,
    prefix="/clients",
    tags=["Clients"],
)

api_router.include_router(
    templates.router,
    prefix="/templates",
    tags=["Templates"],
)

api_router.include_router(
    quotes.router,
    prefix="/quotes",
    tags=["Quotes"],
)
