"""
Quote service.
Handles quote CRUD, guarded lifecycle transitions and live pricing of drafts.

Every write that depends on what was read is a conditional UPDATE: lifecycle
events are conditioned on the status, content updates on the version. Losing
the race is reported as a ConflictError, never silently overwritten.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError

from quotebuilder.core.config import settings
from quotebuilder.core.exceptions import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from quotebuilder.models.base import utcnow
from quotebuilder.models.product import Product
from quotebuilder.models.quote import PolicyClause, PolicyType, Quote, QuoteItem
from quotebuilder.models.user import User
from quotebuilder.schemas.quote import (
    PolicyClauseInput,
    QuoteCreate,
    QuoteDraft,
    QuoteItemDraft,
    QuoteUpdate,
)
from quotebuilder.services.catalog import CatalogService
from quotebuilder.services.client import ClientService
from quotebuilder.services.lifecycle import (
    Actor,
    QuoteEvent,
    QuoteStatus,
    plan_transition,
)
from quotebuilder.services.pricing import (
    CategorySubtotal,
    MAX_AMOUNT,
    MAX_QUANTITY,
    QuoteTotals,
    ZERO,
    calculate_line_total,
    calculate_quote_totals,
    category_breakdown,
    clamp_percent,
    derive_quantity,
    generate_quote_number,
    round_money,
    round_quantity,
    to_money,
)
from quotebuilder.services.revision import RevisionService
from quotebuilder.services.template import TemplateService


logger = logging.getLogger(__name__)

QUOTE_NUMBER_ATTEMPTS = 5

# Columns that may be cleared with an explicit null in an update
NULLABLE_FIELDS = {"notes", "client_id", "template_id"}

# Terms every new quote starts with unless the caller sends its own list
DEFAULT_TERMS = [
    PolicyClauseInput(
        title="All sales are final",
        description="No returns or exchanges will be accepted after the order has been confirmed.",
    ),
    PolicyClauseInput(
        type=PolicyType.PAYMENT,
        title="Payment terms",
        description="Full payment is required upon delivery and satisfactory installation.",
    ),
    PolicyClauseInput(
        title="Quotation validity",
        description="The quotation is valid for 30 days from the date of issue.",
    ),
    PolicyClauseInput(
        title="Delays in project completion",
        description="Delays caused by unforeseen circumstances or client-side issues will be communicated promptly.",
    ),
]


@dataclass(frozen=True)
class PricedLine:
    """A draft line after pricing."""
    product_id: int
    description: Optional[str]
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    line_total: Decimal
    order: int
    unit: Optional[str]
    category_name: Optional[str]


@dataclass(frozen=True)
class QuotePreview:
    """Totals, lines and category breakdown of an unsaved draft."""
    totals: QuoteTotals
    lines: List[PricedLine]
    categories: List[CategorySubtotal]


class QuoteService:
    """Service for quote operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = CatalogService(db)
        self.revisions = RevisionService(db)

    async def _generate_quote_number(self) -> str:
        """Generate a quote number not used by any existing quote."""
        for _ in range(QUOTE_NUMBER_ATTEMPTS):
            number = generate_quote_number(prefix=settings.QUOTE_NUMBER_PREFIX)
            result = await self.db.execute(
                select(Quote.id).where(Quote.quote_number == number)
            )
            if result.scalar_one_or_none() is None:
                return number
        raise ConflictError("Could not allocate a unique quote number, retry")

    async def create(self, user: User, data: QuoteCreate) -> Quote:
        """
        Create a new DRAFT quote with items and policies.

        Raises:
            ValidationError: If the quote has no items, uses inactive products
                or its amounts do not fit the stored precision
            ConflictError: If no free quote number could be allocated
            NotFoundError: If a referenced client, template or product is missing
        """
        if not data.items:
            raise ValidationError("A quote needs at least one item")

        await self._check_references(data.client_id, data.template_id)
        products = await self.catalog.load_products(item.product_id for item in data.items)
        policies = data.policies
        if "policies" not in data.model_fields_set and settings.SEED_DEFAULT_TERMS:
            policies = DEFAULT_TERMS

        # The number check and the insert are not atomic; a collision rolls
        # back to the savepoint and the quote is rebuilt under a new number
        for attempt in range(1, QUOTE_NUMBER_ATTEMPTS + 1):
            quote = self._build_quote(user, data, products, policies, await self._generate_quote_number())
            self._check_storable(quote)
            try:
                async with self.db.begin_nested():
                    self.db.add(quote)
                    await self.db.flush()
            except IntegrityError:
                logger.warning("Quote number %s taken on insert (attempt %s)", quote.quote_number, attempt)
                continue
            break
        else:
            raise ConflictError("Could not allocate a unique quote number, retry")

        logger.info("Created quote %s (%s) for %s", quote.quote_number, quote.grand_total, user.email)

        return await self.get_or_404(quote.id)

    def _build_quote(
        self,
        user: User,
        data: QuoteCreate,
        products: dict[int, Product],
        policies: List[PolicyClauseInput],
        quote_number: str,
    ) -> Quote:
        quote = Quote(
            quote_number=quote_number,
            title=data.title,
            notes=data.notes,
            client_id=data.client_id,
            template_id=data.template_id,
            created_by_id=user.id,
            discount_mode=data.discount_mode,
            overall_discount_percent=round_money(data.overall_discount_percent),
            tax_rate_percent=(
                round_money(data.tax_rate_percent)
                if data.tax_rate_percent is not None
                else settings.DEFAULT_TAX_RATE
            ),
            status=QuoteStatus.DRAFT,
            is_approved=False,
            version=1,
        )
        quote.items = self._build_items(data.items, products)
        quote.policies = self._build_policies(policies)
        quote.calculate_totals()
        return quote

    @staticmethod
    def _check_storable(quote: Quote, totals: QuoteTotals | None = None, items: List[QuoteItem] | None = None) -> None:
        """
        Refuse quotes whose amounts saturated the pricing engine.

        Raises:
            ValidationError: If a quantity or amount reaches the column maximum
        """
        items = quote.items if items is None else items
        totals = totals or QuoteTotals(
            subtotal=quote.subtotal,
            discount_amount=quote.discount_amount,
            net_amount=quote.net_amount,
            tax_amount=quote.tax_amount,
            grand_total=quote.grand_total,
        )
        amounts = [item.line_total for item in items] + [item.rate for item in items]
        amounts.extend(totals.as_dict().values())
        if any(item.quantity >= MAX_QUANTITY for item in items) or any(amount >= MAX_AMOUNT for amount in amounts):
            raise ValidationError(
                "Quote amounts exceed the supported maximum",
                max_amount=str(MAX_AMOUNT),
                max_quantity=str(MAX_QUANTITY),
            )

    def _build_items(self, items: List[QuoteItemDraft], products: dict[int, Product]) -> List[QuoteItem]:
        built = []
        for index, data in enumerate(items):
            product = products[data.product_id]
            quantity = round_quantity(derive_quantity(data.quantity, data.dimensions))
            rate = data.rate if data.rate is not None else product.base_rate
            item = QuoteItem(
                product_id=product.id,
                product=product,
                description=data.description or product.name,
                quantity=quantity,
                rate=round_money(max(to_money(rate), ZERO)),
                discount_percent=round_money(clamp_percent(data.discount_percent)),
                dimensions=data.dimensions.model_dump(mode="json") if data.dimensions else None,
                order=data.order if data.order is not None else index,
            )
            item.refresh_line_total()
            built.append(item)
        return built

    @staticmethod
    def _build_policies(policies: List[PolicyClauseInput]) -> List[PolicyClause]:
        return [
            PolicyClause(
                type=policy.type,
                title=policy.title,
                description=policy.description,
                is_active=policy.is_active,
                order=policy.order if policy.order is not None else index,
            )
            for index, policy in enumerate(policies)
        ]

    async def _check_references(self, client_id: int | None, template_id: int | None) -> None:
        if client_id is not None:
            await ClientService(self.db).get_or_404(client_id)
        if template_id is not None:
            await TemplateService(self.db).get_or_404(template_id)

    async def get_by_id(self, quote_id: int) -> Quote | None:
        """Get quote by ID with items and policies freshly loaded."""
        result = await self.db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, quote_id: int) -> Quote:
        """
        Get quote by ID.

        Raises:
            NotFoundError: If quote not found
        """
        quote = await self.get_by_id(quote_id)
        if not quote:
            raise NotFoundError("Quote", quote_id)
        return quote

    async def update(self, quote_id: int, data: QuoteUpdate, user: User) -> Quote:
        """
        Apply a partial update and bump the version.

        The quote as it was is appended to the revision ledger first. A SENT
        quote goes back to DRAFT and loses its approval when
        REOPEN_SENT_QUOTES_ON_EDIT is on.

        Raises:
            ConflictError: If ``expected_version`` is stale or a concurrent
                write changed the quote between read and write
            ValidationError: If the new item list is empty or the new amounts
                do not fit the stored precision
        """
        quote = await self.get_or_404(quote_id)

        if data.expected_version is not None and data.expected_version != quote.version:
            raise ConflictError(
                f"Quote {quote.quote_number} is at version {quote.version}, not {data.expected_version}",
                quote_id=quote.id,
                expected_version=data.expected_version,
                current_version=quote.version,
            )

        patch = {
            field: value
            for field, value in data.model_dump(
                exclude_unset=True,
                exclude={"expected_version", "items", "policies"},
            ).items()
            if value is not None or field in NULLABLE_FIELDS
        }
        new_items = None
        new_policies = None
        if data.items is not None:
            if not data.items:
                raise ValidationError("A quote needs at least one item")
            products = await self.catalog.load_products(item.product_id for item in data.items)
            new_items = self._build_items(data.items, products)
        if data.policies is not None:
            new_policies = self._build_policies(data.policies)

        if not patch and new_items is None and new_policies is None:
            return quote

        await self._check_references(patch.get("client_id"), patch.get("template_id"))
        for field in ("overall_discount_percent", "tax_rate_percent"):
            if field in patch:
                patch[field] = round_money(patch[field])

        transition = plan_transition(
            quote.status,
            QuoteEvent.UPDATE,
            Actor.from_user(user),
            reopen_sent_on_edit=settings.REOPEN_SENT_QUOTES_ON_EDIT,
        )
        totals = calculate_quote_totals(
            new_items if new_items is not None else quote.items,
            patch.get("discount_mode", quote.discount_mode),
            patch.get("overall_discount_percent", quote.overall_discount_percent),
            patch.get("tax_rate_percent", quote.tax_rate_percent),
        )
        self._check_storable(quote, totals, new_items)

        read_version = quote.version
        try:
            await self.revisions.append(quote, changed_by_id=user.id)
        except IntegrityError:
            logger.warning("Revision %s of quote %s already recorded", read_version, quote.quote_number)
            raise ConflictError(quote_id=quote.id, version=read_version)

        result = await self.db.execute(
            update(Quote)
            .where(
                Quote.id == quote.id,
                Quote.version == read_version,
                Quote.status == transition.source,
            )
            .values(
                **patch,
                **totals.as_dict(),
                **transition.changes,
                version=read_version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise await self._lost_race(quote.id, "update")

        if new_items is not None:
            quote.items.clear()
            quote.items.extend(new_items)
        if new_policies is not None:
            quote.policies.clear()
            quote.policies.extend(new_policies)
        await self.db.flush()

        if transition.target != transition.source:
            logger.info("Quote %s reopened from %s to %s by edit", quote.quote_number, transition.source.value, transition.target.value)
        logger.info("Updated quote %s to version %s", quote.quote_number, read_version + 1)

        return await self.get_or_404(quote.id)

    async def _lost_race(self, quote_id: int, action: str) -> Exception:
        """Explain why a conditional update matched no row."""
        result = await self.db.execute(select(Quote.id).where(Quote.id == quote_id))
        if result.scalar_one_or_none() is None:
            return NotFoundError("Quote", quote_id)
        logger.warning("Concurrent modification of quote %s during %s", quote_id, action)
        return ConflictError(quote_id=quote_id, action=action)

    async def _transition(
        self,
        quote_id: int,
        event: QuoteEvent,
        user: User,
        notes: str | None = None,
    ) -> Quote:
        quote = await self.get_or_404(quote_id)
        transition = plan_transition(
            quote.status,
            event,
            Actor.from_user(user),
            is_approved=quote.is_approved,
            notes=notes,
        )
        if transition.is_noop:
            return quote

        result = await self.db.execute(
            update(Quote)
            .where(Quote.id == quote.id, Quote.status == transition.source)
            .values(**transition.changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise await self._lost_race(quote.id, event.value)

        logger.info(
            "Quote %s: %s -> %s on %s by user %s",
            quote.quote_number,
            transition.source.value,
            transition.target.value,
            event.value,
            user.id,
        )
        return await self.get_or_404(quote.id)

    async def request_approval(self, quote_id: int, user: User) -> Quote:
        """DRAFT -> PENDING_APPROVAL."""
        return await self._transition(quote_id, QuoteEvent.REQUEST_APPROVAL, user)

    async def approve(self, quote_id: int, user: User, notes: str | None = None) -> Quote:
        """PENDING_APPROVAL -> SENT, recording the approver."""
        return await self._transition(quote_id, QuoteEvent.APPROVE, user, notes)

    async def reject(self, quote_id: int, user: User, notes: str | None = None) -> Quote:
        """PENDING_APPROVAL -> REJECTED, recording the reviewer."""
        return await self._transition(quote_id, QuoteEvent.REJECT, user, notes)

    async def send(self, quote_id: int, user: User) -> Quote:
        """DRAFT -> SENT for approved quotes or callers allowed to bypass approval."""
        return await self._transition(quote_id, QuoteEvent.SEND, user)

    async def accept(self, quote_id: int, user: User) -> Quote:
        """SENT -> ACCEPTED."""
        return await self._transition(quote_id, QuoteEvent.ACCEPT, user)

    async def revise(self, quote_id: int, user: User) -> Quote:
        """REJECTED -> DRAFT, clearing the previous decision."""
        return await self._transition(quote_id, QuoteEvent.REVISE, user)

    async def delete(self, quote_id: int) -> None:
        """
        Delete a quote.

        Raises:
            IllegalTransitionError: If the quote is no longer a draft
        """
        quote = await self.get_or_404(quote_id)
        if quote.status != QuoteStatus.DRAFT:
            raise IllegalTransitionError(
                f"Cannot delete: quote must be in DRAFT status; current status: {quote.status.value}",
                event="delete",
                current_status=quote.status.value,
                allowed_statuses=[QuoteStatus.DRAFT.value],
            )

        await self.db.delete(quote)
        await self.db.flush()
        logger.info("Deleted quote %s", quote.quote_number)

    async def get_breakdown(self, quote_id: int) -> List[CategorySubtotal]:
        """Category subtotals of a saved quote, largest first."""
        quote = await self.get_or_404(quote_id)
        names = await self.catalog.category_names(item.product_id for item in quote.items)
        return category_breakdown(quote.items, quote.discount_mode, names)

    async def preview(self, draft: QuoteDraft) -> QuotePreview:
        """
        Price an unsaved draft.

        Numbers are clamped rather than rejected so a half-filled form can
        always be priced. Only unknown products fail.
        """
        products = await self.catalog.load_products(
            (item.product_id for item in draft.items),
            require_active=False,
        )

        lines = []
        for index, item in enumerate(draft.items):
            product = products[item.product_id]
            quantity = derive_quantity(item.quantity, item.dimensions)
            rate = max(to_money(item.rate if item.rate is not None else product.base_rate), ZERO)
            discount = clamp_percent(item.discount_percent)
            lines.append(
                PricedLine(
                    product_id=product.id,
                    description=item.description or product.name,
                    quantity=quantity,
                    rate=rate,
                    discount_percent=discount,
                    line_total=round_money(calculate_line_total(quantity, rate, discount)),
                    order=item.order if item.order is not None else index,
                    unit=product.unit,
                    category_name=product.category_name,
                )
            )

        tax_rate = draft.tax_rate_percent if draft.tax_rate_percent is not None else settings.DEFAULT_TAX_RATE
        totals = calculate_quote_totals(lines, draft.discount_mode, draft.overall_discount_percent, tax_rate)
        categories = category_breakdown(
            lines,
            draft.discount_mode,
            {pid: product.category_name for pid, product in products.items()},
        )

        return QuotePreview(totals=totals, lines=lines, categories=categories)

    async def get_stats(self) -> dict[str, Any]:
        """Get quote statistics."""
        status_counts = {s.value: 0 for s in QuoteStatus}
        result = await self.db.execute(
            select(Quote.status, func.count(Quote.id)).group_by(Quote.status)
        )
        for quote_status, count in result.all():
            status_counts[QuoteStatus(quote_status).value] = count

        accepted_result = await self.db.execute(
            select(func.sum(Quote.grand_total)).where(Quote.status == QuoteStatus.ACCEPTED)
        )
        total_accepted = accepted_result.scalar() or Decimal("0.00")

        # Quotes the client has had in hand
        delivered = status_counts[QuoteStatus.SENT.value] + status_counts[QuoteStatus.ACCEPTED.value]
        accepted = status_counts[QuoteStatus.ACCEPTED.value]
        acceptance_rate = (accepted / delivered * 100) if delivered > 0 else 0

        return {
            "status_counts": status_counts,
            "total_accepted_value": round_money(total_accepted),
            "acceptance_rate": round(acceptance_rate, 2),
        }

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        status: QuoteStatus | None = None,
        client_id: int | None = None,
        search: str | None = None,
    ) -> tuple[List[Quote], int]:
        """List quotes with pagination and filters, newest first."""
        query = select(Quote)
        count_query = select(func.count(Quote.id))

        if status:
            query = query.where(Quote.status == status)
            count_query = count_query.where(Quote.status == status)

        if client_id:
            query = query.where(Quote.client_id == client_id)
            count_query = count_query.where(Quote.client_id == client_id)

        if search:
            search_filter = f"%{search}%"
            condition = Quote.title.ilike(search_filter) | Quote.quote_number.ilike(search_filter)
            query = query.where(condition)
            count_query = count_query.where(condition)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Quote.created_at.desc(), Quote.id.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        quotes = list(result.scalars().all())

        return quotes, total
