"""
Quote management endpoints.
CRUD, live pricing, the approval workflow and PDF export.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import FileResponse

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.schemas.quote import (
    ApprovalDecision,
    CategorySubtotalResponse,
    QuoteCreate,
    QuoteDraft,
    QuoteListResponse,
    QuotePreviewResponse,
    QuoteResponse,
    QuoteRevisionResponse,
    QuoteStats,
    QuoteUpdate,
)
from quotebuilder.services.lifecycle import QuoteStatus
from quotebuilder.services.pdf import PDFService
from quotebuilder.services.quote import QuoteService
from quotebuilder.services.revision import RevisionService
from quotebuilder.services.template import TemplateService


router = APIRouter()

QuoteReader = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.READ))]
QuoteCreator = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.CREATE))]
QuoteEditor = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.EDIT))]
QuoteDeleter = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.DELETE))]
QuoteExporter = Annotated[User, Depends(require_permission(PermissionResource.QUOTES, PermissionAction.EXPORT))]


@router.post(
    "/preview",
    response_model=QuotePreviewResponse,
    summary="Price a draft",
    description="Compute totals and the category breakdown of an unsaved quote",
)
async def preview_quote(
    data: QuoteDraft,
    current_user: QuoteReader,
    db: DbSession,
) -> QuotePreviewResponse:
    """Price a draft without saving it."""
    preview = await QuoteService(db).preview(data)
    return QuotePreviewResponse.model_validate(preview)


@router.post(
    "",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quote",
    description="Create a new DRAFT quote with its items",
)
async def create_quote(
    data: QuoteCreate,
    current_user: QuoteCreator,
    db: DbSession,
) -> QuoteResponse:
    """Create a new quote."""
    service = QuoteService(db)
    quote = await service.create(current_user, data)
    return QuoteResponse.model_validate(quote)


@router.get(
    "",
    response_model=QuoteListResponse,
    summary="List quotes",
    description="Get the paginated list of quotes, newest first",
)
async def list_quotes(
    current_user: QuoteReader,
    db: DbSession,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    status: QuoteStatus | None = Query(None, description="Filter by status"),
    client_id: int | None = Query(None, description="Filter by client"),
    search: str | None = Query(None, description="Search by title or quote number"),
) -> QuoteListResponse:
    """List all quotes with pagination."""
    service = QuoteService(db)
    skip = (page - 1) * per_page

    quotes, total = await service.list(
        skip=skip,
        limit=per_page,
        status=status,
        client_id=client_id,
        search=search,
    )

    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in quotes],
        total=total,
        page=page,
        per_page=per_page,
        pages=QuoteListResponse.page_count(total, per_page),
    )


@router.get(
    "/stats",
    response_model=QuoteStats,
    summary="Quote statistics",
    description="Counts per status, accepted value and acceptance rate",
)
async def get_quote_stats(
    current_user: QuoteReader,
    db: DbSession,
) -> QuoteStats:
    """Get quote statistics."""
    service = QuoteService(db)
    return QuoteStats.model_validate(await service.get_stats())


@router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Quote details",
)
async def get_quote(
    quote_id: int,
    current_user: QuoteReader,
    db: DbSession,
) -> QuoteResponse:
    """Get a quote by ID."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    return QuoteResponse.model_validate(quote)


@router.put(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Update a quote",
    description=(
        "Partial update. Given items or policies replace the existing ones. "
        "Pass expectedVersion to fail with 409 instead of overwriting a concurrent edit."
    ),
)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user: QuoteEditor,
    db: DbSession,
) -> QuoteResponse:
    """Update a quote."""
    service = QuoteService(db)
    quote = await service.update(quote_id, data, current_user)
    return QuoteResponse.model_validate(quote)


@router.delete(
    "/{quote_id}",
    response_model=MessageResponse,
    summary="Delete a draft quote",
)
async def delete_quote(
    quote_id: int,
    current_user: QuoteDeleter,
    db: DbSession,
) -> MessageResponse:
    """Delete a quote still in DRAFT."""
    service = QuoteService(db)
    await service.delete(quote_id)
    return MessageResponse(message="Quote deleted")


@router.post(
    "/{quote_id}/request-approval",
    response_model=QuoteResponse,
    summary="Request approval",
)
async def request_approval(
    quote_id: int,
    current_user: QuoteEditor,
    db: DbSession,
) -> QuoteResponse:
    """Submit a draft for approval."""
    quote = await QuoteService(db).request_approval(quote_id, current_user)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/approve",
    response_model=QuoteResponse,
    summary="Approve a quote",
    description="Approving a pending quote sends it",
)
async def approve_quote(
    quote_id: int,
    current_user: QuoteReader,
    db: DbSession,
    data: ApprovalDecision | None = None,
) -> QuoteResponse:
    """Approve a pending quote."""
    notes = data.notes if data else None
    quote = await QuoteService(db).approve(quote_id, current_user, notes)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/reject",
    response_model=QuoteResponse,
    summary="Reject a quote",
)
async def reject_quote(
    quote_id: int,
    current_user: QuoteReader,
    db: DbSession,
    data: ApprovalDecision | None = None,
) -> QuoteResponse:
    """Reject a pending quote."""
    notes = data.notes if data else None
    quote = await QuoteService(db).reject(quote_id, current_user, notes)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/send",
    response_model=QuoteResponse,
    summary="Send a quote",
    description="Requires a prior approval unless the caller may bypass it",
)
async def send_quote(
    quote_id: int,
    current_user: QuoteEditor,
    db: DbSession,
) -> QuoteResponse:
    """Mark a quote as sent."""
    quote = await QuoteService(db).send(quote_id, current_user)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/accept",
    response_model=QuoteResponse,
    summary="Mark a quote accepted",
)
async def accept_quote(
    quote_id: int,
    current_user: QuoteEditor,
    db: DbSession,
) -> QuoteResponse:
    """Record the client's acceptance."""
    quote = await QuoteService(db).accept(quote_id, current_user)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/revise",
    response_model=QuoteResponse,
    summary="Reopen a rejected quote",
)
async def revise_quote(
    quote_id: int,
    current_user: QuoteEditor,
    db: DbSession,
) -> QuoteResponse:
    """Move a rejected quote back to DRAFT."""
    quote = await QuoteService(db).revise(quote_id, current_user)
    return QuoteResponse.model_validate(quote)


@router.get(
    "/{quote_id}/breakdown",
    response_model=list[CategorySubtotalResponse],
    summary="Category breakdown",
    description="Line amounts grouped by product category, largest first",
)
async def get_quote_breakdown(
    quote_id: int,
    current_user: QuoteReader,
    db: DbSession,
) -> list[CategorySubtotalResponse]:
    rows = await QuoteService(db).get_breakdown(quote_id)
    return [CategorySubtotalResponse.model_validate(row) for row in rows]


@router.get(
    "/{quote_id}/revisions",
    response_model=list[QuoteRevisionResponse],
    summary="Revision history",
    description="Snapshots taken before each update, newest first",
)
async def list_quote_revisions(
    quote_id: int,
    current_user: QuoteReader,
    db: DbSession,
) -> list[QuoteRevisionResponse]:
    await QuoteService(db).get_or_404(quote_id)
    revisions = await RevisionService(db).list(quote_id)
    return [QuoteRevisionResponse.model_validate(r) for r in revisions]


@router.get(
    "/{quote_id}/pdf",
    summary="Download quote PDF",
    response_class=FileResponse,
)
async def download_quote_pdf(
    quote_id: int,
    current_user: QuoteExporter,
    db: DbSession,
):
    """Render the quote with its template, or the default template."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    template = quote.template or await TemplateService(db).get_default()
    breakdown = await service.get_breakdown(quote_id)

    pdf_path = PDFService().generate_quote_pdf(quote, template, breakdown)

    return FileResponse(
        path=pdf_path,
        filename=f"quote_{quote.quote_number}.pdf",
        media_type="application/pdf",
    )
