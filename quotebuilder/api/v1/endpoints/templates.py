"""
PDF template endpoints.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, status

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.schemas.template import (
    TemplateCreate,
    TemplateDuplicate,
    TemplateResponse,
    TemplateUpdate,
)
from quotebuilder.services.template import TemplateService


router = APIRouter()

QuoteReader = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.READ))]
QuoteExporter = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.EXPORT))]


@router.get(
    "",
    response_model=list[TemplateResponse],
    summary="List templates",
)
async def list_templates(
    current_user: QuoteReader,
    db: DbSession,
) -> list[TemplateResponse]:
    templates = await TemplateService(db).list()
    return [TemplateResponse.model_validate(t) for t in templates]


@router.post(
    "",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a template",
)
async def create_template(
    data: TemplateCreate,
    current_user: QuoteExporter,
    db: DbSession,
) -> TemplateResponse:
    template = await TemplateService(db).create(data)
    return TemplateResponse.model_validate(template)


@router.post(
    "/{template_id}/set-default",
    response_model=TemplateResponse,
    summary="Make a template the default",
)
async def set_default_template(
    template_id: int,
    current_user: QuoteExporter,
    db: DbSession,
) -> TemplateResponse:
    service = TemplateService(db)
    template = await service.get_or_404(template_id)
    template = await service.set_default(template)
    return TemplateResponse.model_validate(template)


@router.patch(
    "/{template_id}",
    response_model=TemplateResponse,
    summary="Update a template",
)
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    current_user: QuoteExporter,
    db: DbSession,
) -> TemplateResponse:
    service = TemplateService(db)
    template = await service.get_or_404(template_id)
    template = await service.update(template, data)
    return TemplateResponse.model_validate(template)


@router.post(
    "/{template_id}/duplicate",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a template",
)
async def duplicate_template(
    template_id: int,
    current_user: QuoteExporter,
    db: DbSession,
    data: TemplateDuplicate | None = None,
) -> TemplateResponse:
    """Copy a template; the copy is named "<name> (Copy)" unless a name is given."""
    service = TemplateService(db)
    template = await service.get_or_404(template_id)
    copy = await service.duplicate(template, data)
    return TemplateResponse.model_validate(copy)


@router.delete(
    "/{template_id}",
    response_model=MessageResponse,
    summary="Delete a template",
)
async def delete_template(
    template_id: int,
    current_user: QuoteExporter,
    db: DbSession,
) -> MessageResponse:
    """Delete a template. The default template cannot be deleted."""
    service = TemplateService(db)
    template = await service.get_or_404(template_id)
    await service.delete(template)
    return MessageResponse(message="Template deleted")
