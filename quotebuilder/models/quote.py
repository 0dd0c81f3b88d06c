"""
Quote aggregate: the quote, its priced line items and its policy clauses.
Status values and discount modes come from the lifecycle and pricing services.
"""

from typing import Optional, List, Any, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    Integer,
    Numeric,
    Boolean,
    DateTime,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebuilder.models.base import BaseModel
from quotebuilder.services.lifecycle import QuoteStatus
from quotebuilder.services.pricing import (
    DiscountMode,
    QuoteTotals,
    calculate_line_total,
    calculate_quote_totals,
    round_money,
)

if TYPE_CHECKING:
    from quotebuilder.models.user import User
    from quotebuilder.models.client import Client
    from quotebuilder.models.product import Product
    from quotebuilder.models.template import PdfTemplate


class PolicyType(str, Enum):
    """Kinds of terms-and-conditions clauses."""
    WARRANTY = "WARRANTY"
    RETURNS = "RETURNS"
    PAYMENT = "PAYMENT"
    CUSTOM = "CUSTOM"


def _money_column(**kwargs: Any):
    return mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        **kwargs,
    )


class Quote(BaseModel):
    """
    Quote model.

    Attributes:
        quote_number: Unique human-readable number, assigned once
        title: Quote title
        client_id: Optional client the quote is addressed to
        template_id: Optional PDF template
        created_by_id: User who created the quote
        discount_mode: LINE_ITEM, OVERALL or BOTH
        overall_discount_percent: Used in OVERALL and BOTH modes
        tax_rate_percent: Tax rate applied to the net amount
        status: Lifecycle status
        is_approved: Set only by the approve/reject transitions
        approved_by_id / approved_at / approval_notes: Approval metadata
        subtotal / discount_amount / net_amount / tax_amount / grand_total: Stored totals
        version: Incremented on every content change
    """

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # References
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    template_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("pdf_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Pricing settings
    discount_mode: Mapped[DiscountMode] = mapped_column(
        SQLEnum(DiscountMode),
        default=DiscountMode.LINE_ITEM,
        nullable=False,
    )
    overall_discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    tax_rate_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        default=Decimal("18.00"),
        nullable=False,
    )

    # Lifecycle
    status: Mapped[QuoteStatus] = mapped_column(
        SQLEnum(QuoteStatus),
        default=QuoteStatus.DRAFT,
        nullable=False,
        index=True,
    )
    is_approved: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    approved_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approval_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approval_requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Totals (calculated from items)
    subtotal: Mapped[Decimal] = _money_column()
    discount_amount: Mapped[Decimal] = _money_column()
    net_amount: Mapped[Decimal] = _money_column()
    tax_amount: Mapped[Decimal] = _money_column()
    grand_total: Mapped[Decimal] = _money_column()

    version: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )

    # Relationships
    client: Mapped[Optional["Client"]] = relationship(
        "Client",
        back_populates="quotes",
        lazy="selectin",
    )
    template: Mapped[Optional["PdfTemplate"]] = relationship(
        "PdfTemplate",
        lazy="selectin",
    )
    created_by: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[created_by_id],
        lazy="selectin",
    )
    approved_by: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[approved_by_id],
        lazy="selectin",
    )
    items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.order",
        lazy="selectin",
    )
    policies: Mapped[List["PolicyClause"]] = relationship(
        "PolicyClause",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="PolicyClause.order",
        lazy="selectin",
    )

    @property
    def is_editable(self) -> bool:
        """Drafts are edited in place; later statuses go through a revision."""
        return self.status == QuoteStatus.DRAFT

    def calculate_totals(self) -> QuoteTotals:
        """Recalculate line totals and quote totals from items."""
        for item in self.items:
            item.refresh_line_total()
        totals = calculate_quote_totals(
            self.items,
            self.discount_mode,
            self.overall_discount_percent,
            self.tax_rate_percent,
        )
        self.subtotal = totals.subtotal
        self.discount_amount = totals.discount_amount
        self.net_amount = totals.net_amount
        self.tax_amount = totals.tax_amount
        self.grand_total = totals.grand_total
        return totals

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number='{self.quote_number}', status={self.status}, total={self.grand_total})>"


class QuoteItem(BaseModel):
    """
    Quote line item model.

    Attributes:
        quote_id: Foreign key to the quote
        product_id: Catalog product being quoted
        description: Optional override of the product description
        quantity: Number of units (derived from dimensions for area pricing)
        rate: Price per unit for this quote, independent of the catalog rate
        discount_percent: Line discount, used in LINE_ITEM and BOTH modes
        dimensions: Optional {"length", "width"} for area-priced products
        line_total: quantity × rate net of the line discount
        order: Display position
    """

    __tablename__ = "quote_items"

    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=3),
        default=Decimal("1.000"),
        nullable=False,
    )
    rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    dimensions: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    line_total: Mapped[Decimal] = _money_column()
    order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    quote: Mapped["Quote"] = relationship(
        "Quote",
        back_populates="items",
    )
    product: Mapped["Product"] = relationship(
        "Product",
        lazy="selectin",
    )

    @property
    def unit(self) -> Optional[str]:
        return self.product.unit if self.product else None

    @property
    def category_name(self) -> Optional[str]:
        return self.product.category_name if self.product else None

    def refresh_line_total(self) -> Decimal:
        self.line_total = round_money(
            calculate_line_total(self.quantity, self.rate, self.discount_percent)
        )
        return self.line_total

    def __repr__(self) -> str:
        return f"<QuoteItem(id={self.id}, product_id={self.product_id}, total={self.line_total})>"


class PolicyClause(BaseModel):
    """Terms-and-conditions clause attached to a quote. Never priced."""

    __tablename__ = "policy_clauses"

    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[PolicyType] = mapped_column(
        SQLEnum(PolicyType),
        default=PolicyType.CUSTOM,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    quote: Mapped["Quote"] = relationship(
        "Quote",
        back_populates="policies",
    )

    def __repr__(self) -> str:
        return f"<PolicyClause(id={self.id}, type={self.type}, title='{self.title}')>"
