"""
Client management endpoints.
CRUD operations for clients.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, Query, status

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.client import (
    ClientCreate,
    ClientUpdate,
    ClientResponse,
    ClientListResponse,
)
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.services.client import ClientService


router = APIRouter()

ClientReader = Annotated[User, Depends(require_permission(PermissionResource.CLIENTS, PermissionAction.READ))]
ClientCreator = Annotated[User, Depends(require_permission(PermissionResource.CLIENTS, PermissionAction.CREATE))]
ClientEditor = Annotated[User, Depends(require_permission(PermissionResource.CLIENTS, PermissionAction.EDIT))]
ClientDeleter = Annotated[User, Depends(require_permission(PermissionResource.CLIENTS, PermissionAction.DELETE))]


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client",
)
async def create_client(
    data: ClientCreate,
    current_user: ClientCreator,
    db: DbSession,
) -> ClientResponse:
    """Create a new client."""
    service = ClientService(db)
    client = await service.create(data)
    return ClientResponse.model_validate(client)


@router.get(
    "",
    response_model=ClientListResponse,
    summary="List clients",
    description="Get the paginated client list",
)
async def list_clients(
    current_user: ClientReader,
    db: DbSession,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    search: str | None = Query(None, description="Search by name, email or company"),
    is_active: bool | None = Query(None, description="Filter by active status"),
) -> ClientListResponse:
    """List all clients with pagination."""
    service = ClientService(db)
    skip = (page - 1) * per_page

    clients, total = await service.list(
        skip=skip,
        limit=per_page,
        search=search,
        is_active=is_active,
    )

    return ClientListResponse(
        items=[ClientResponse.model_validate(c) for c in clients],
        total=total,
        page=page,
        per_page=per_page,
        pages=ClientListResponse.page_count(total, per_page),
    )


@router.get(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Client details",
)
async def get_client(
    client_id: int,
    current_user: ClientReader,
    db: DbSession,
) -> ClientResponse:
    """Get a client by ID."""
    service = ClientService(db)
    client = await service.get_or_404(client_id)
    return ClientResponse.model_validate(client)


@router.patch(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Update a client",
)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: ClientEditor,
    db: DbSession,
) -> ClientResponse:
    """Update a client."""
    service = ClientService(db)
    client = await service.get_or_404(client_id)
    client = await service.update(client, data)
    return ClientResponse.model_validate(client)


@router.delete(
    "/{client_id}",
    response_model=MessageResponse,
    summary="Deactivate a client",
)
async def delete_client(
    client_id: int,
    current_user: ClientDeleter,
    db: DbSession,
) -> MessageResponse:
    """Deactivate a client. Their quotes are kept."""
    service = ClientService(db)
    client = await service.get_or_404(client_id)
    await service.delete(client)
    return MessageResponse(message="Client deactivated")
