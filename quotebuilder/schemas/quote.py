"""
Quote schemas for request/response validation.

Two families of item inputs exist: draft items accept anything numeric and
are clamped by the pricing engine (live form pricing must never fail), while
items being saved must already satisfy the quote item invariants.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from pydantic import Field

from quotebuilder.schemas.base import BaseSchema, PaginatedResponse, TimestampSchema
from quotebuilder.models.quote import PolicyType
from quotebuilder.services.lifecycle import QuoteStatus
from quotebuilder.services.pricing import MAX_AMOUNT, MAX_QUANTITY, DiscountMode


class Dimensions(BaseSchema):
    """Length and width of an area-priced line."""

    length: Decimal | None = None
    width: Decimal | None = None


class QuoteItemDraft(BaseSchema):
    """A line of an unsaved quote, as typed in the form."""

    product_id: int
    description: str | None = None
    quantity: Decimal = Decimal("1")
    rate: Decimal | None = Field(None, description="Defaults to the product base rate")
    discount_percent: Decimal = Decimal("0")
    dimensions: Dimensions | None = None
    order: int | None = None


class QuoteItemCreate(QuoteItemDraft):
    """A line being saved on a quote."""

    quantity: Decimal = Field(default=Decimal("1"), ge=0, lt=MAX_QUANTITY)
    rate: Decimal | None = Field(None, ge=0, lt=MAX_AMOUNT, description="Defaults to the product base rate")
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class PolicyClauseInput(BaseSchema):
    """Terms-and-conditions clause attached to a quote."""

    type: PolicyType = PolicyType.CUSTOM
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    is_active: bool = True
    order: int | None = None


class QuoteDraft(BaseSchema):
    """
    An in-progress quote held by the client while it is being composed.
    Priced without being persisted.
    """

    title: str | None = None
    client_id: int | None = None
    template_id: int | None = None
    discount_mode: DiscountMode = DiscountMode.LINE_ITEM
    overall_discount_percent: Decimal = Decimal("0")
    tax_rate_percent: Decimal | None = None
    items: list[QuoteItemDraft] = Field(default_factory=list)
    policies: list[PolicyClauseInput] = Field(default_factory=list)


class QuoteCreate(QuoteDraft):
    """Schema for creating a quote."""

    title: str = Field(..., min_length=1, max_length=255)
    notes: str | None = None
    overall_discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_rate_percent: Decimal | None = Field(None, ge=0, le=100)
    items: list[QuoteItemCreate] = Field(default_factory=list)


class QuoteUpdate(BaseSchema):
    """
    Schema for updating a quote.
    ``items`` and ``policies`` replace the existing lists when given.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    notes: str | None = None
    client_id: int | None = None
    template_id: int | None = None
    discount_mode: DiscountMode | None = None
    overall_discount_percent: Decimal | None = Field(None, ge=0, le=100)
    tax_rate_percent: Decimal | None = Field(None, ge=0, le=100)
    items: list[QuoteItemCreate] | None = None
    policies: list[PolicyClauseInput] | None = None
    expected_version: int | None = Field(
        None,
        description="Reject the update with 409 if the quote is no longer at this version",
    )


class ApprovalDecision(BaseSchema):
    """Body of the approve and reject actions."""

    notes: str | None = None


class QuoteItemResponse(TimestampSchema):
    """Quote item response schema."""

    id: int
    product_id: int
    description: str | None
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    dimensions: dict[str, Any] | None
    line_total: Decimal
    order: int
    unit: str | None
    category_name: str | None


class PolicyClauseResponse(BaseSchema):
    """Policy clause response schema."""

    id: int
    type: PolicyType
    title: str
    description: str
    is_active: bool
    order: int


class QuoteTotalsResponse(BaseSchema):
    """Canonical totals."""

    subtotal: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal


class CategorySubtotalResponse(BaseSchema):
    """One category of the breakdown report."""

    category_name: str
    total: Decimal
    item_count: int


class PricedLineResponse(BaseSchema):
    """A draft line after pricing."""

    product_id: int
    description: str | None
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    line_total: Decimal
    order: int
    unit: str | None
    category_name: str | None


class QuotePreviewResponse(BaseSchema):
    """Pricing of an unsaved draft."""

    totals: QuoteTotalsResponse
    lines: list[PricedLineResponse]
    categories: list[CategorySubtotalResponse]


class QuoteResponse(TimestampSchema):
    """Quote response schema."""

    id: int
    quote_number: str
    title: str
    notes: str | None
    client_id: int | None
    template_id: int | None
    created_by_id: int | None
    discount_mode: DiscountMode
    overall_discount_percent: Decimal
    tax_rate_percent: Decimal
    status: QuoteStatus
    is_approved: bool
    approved_by_id: int | None
    approved_at: datetime | None
    approval_notes: str | None
    approval_requested_at: datetime | None
    sent_at: datetime | None
    accepted_at: datetime | None
    subtotal: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    version: int
    items: list[QuoteItemResponse]
    policies: list[PolicyClauseResponse]


class QuoteListResponse(PaginatedResponse):
    """Paginated quote list response."""

    items: list[QuoteResponse]


class QuoteSnapshot(BaseSchema):
    """Content of a quote as recorded in the revision ledger."""

    quote_number: str
    title: str
    notes: str | None
    client_id: int | None
    template_id: int | None
    discount_mode: DiscountMode
    overall_discount_percent: Decimal
    tax_rate_percent: Decimal
    is_approved: bool
    subtotal: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    items: list[QuoteItemResponse]
    policies: list[PolicyClauseResponse]


class QuoteRevisionResponse(BaseSchema):
    """Revision ledger entry."""

    id: int
    quote_id: int
    version: int
    status: str
    snapshot: dict[str, Any]
    changed_by_id: int | None
    notes: str | None
    created_at: datetime


class QuoteStats(BaseSchema):
    """Quote statistics."""

    status_counts: dict[str, int]
    total_accepted_value: Decimal
    acceptance_rate: float
