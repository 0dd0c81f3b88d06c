"""
Quote pricing engine.

Pure functions used both for live pricing of an unsaved draft and for the
totals persisted on a quote. Nothing here touches the database and nothing
here raises for bad numbers: out-of-range or non-finite input is clamped to a
safe value so a half-typed form can always be priced.

All amounts are Decimal. Line amounts are rounded to cents before they are
summed, so the category breakdown always adds up to the subtotal.
"""

import logging
import secrets
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")
# Largest values the Numeric(12, 2) and Numeric(12, 3) columns hold; amounts saturate here
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = Decimal("999999999.999")
DEFAULT_TAX_RATE = Decimal("18")
UNCATEGORIZED = "Uncategorized"


class DiscountMode(str, Enum):
    """Where discounts apply: per line, once on the subtotal, or both."""
    LINE_ITEM = "LINE_ITEM"
    OVERALL = "OVERALL"
    BOTH = "BOTH"


@dataclass(frozen=True)
class QuoteTotals:
    """Canonical totals of a quote."""
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    grand_total: Decimal = ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return asdict(self)


@dataclass(frozen=True)
class CategorySubtotal:
    """One row of the category breakdown report."""
    category_name: str
    total: Decimal
    item_count: int


# ---------------------------------------------------------------------------
# Money primitives
# ---------------------------------------------------------------------------

def to_money(value: Any) -> Decimal:
    """
    Convert any numeric-ish value to Decimal.

    None, NaN, infinities, unparsable strings and negative zero all become 0.
    Magnitudes beyond MAX_AMOUNT saturate at ±MAX_AMOUNT.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            return ZERO
    if not amount.is_finite() or amount.is_zero():
        return ZERO
    return max(min(amount, MAX_AMOUNT), -MAX_AMOUNT)


def round_money(value: Any) -> Decimal:
    """Quantize to cents, half up."""
    rounded = to_money(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    return rounded if rounded else Decimal("0.00")


def round_quantity(value: Any) -> Decimal:
    """Quantize a quantity to three decimals, half up, within [0, MAX_QUANTITY]."""
    quantity = min(max(to_money(value), ZERO), MAX_QUANTITY)
    return quantity.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def percent_of(amount: Any, percent: Any) -> Decimal:
    """amount × percent / 100."""
    return to_money(amount) * to_money(percent) / HUNDRED


def clamp_percent(percent: Any) -> Decimal:
    """Clamp a percentage into [0, 100]."""
    return min(max(to_money(percent), ZERO), HUNDRED)


def apply_discount(amount: Any, percent: Any) -> Decimal:
    """
    Remove a percentage from an amount.

    The percentage is clamped first, so a discount can never exceed the
    amount or turn into a surcharge.
    """
    return to_money(amount) * (1 - clamp_percent(percent) / HUNDRED)


# ---------------------------------------------------------------------------
# Line pricing
# ---------------------------------------------------------------------------

def calculate_line_total(quantity: Any, rate: Any, discount_percent: Any = 0) -> Decimal:
    """quantity × rate net of the line's own discount. Negative inputs count as 0."""
    gross = max(to_money(quantity), ZERO) * max(to_money(rate), ZERO)
    return apply_discount(gross, discount_percent)


def _dimension(dimensions: Any, name: str) -> Any:
    if isinstance(dimensions, Mapping):
        return dimensions.get(name)
    return getattr(dimensions, name, None)


def derive_quantity(quantity: Any, dimensions: Any = None) -> Decimal:
    """
    Quantity of an area-priced line.

    When both length and width are given, their product replaces whatever
    quantity was typed in by hand.
    """
    if dimensions:
        length = _dimension(dimensions, "length")
        width = _dimension(dimensions, "width")
        if length is not None and width is not None:
            return min(max(to_money(length) * to_money(width), ZERO), MAX_QUANTITY)
    return min(max(to_money(quantity), ZERO), MAX_QUANTITY)


def _coerce_mode(discount_mode: Any) -> DiscountMode:
    try:
        return DiscountMode(discount_mode)
    except ValueError:
        logger.debug("Unknown discount mode %r, pricing as LINE_ITEM", discount_mode)
        return DiscountMode.LINE_ITEM


def _coerce_tax_rate(tax_rate_percent: Any) -> Decimal:
    if tax_rate_percent is None:
        return DEFAULT_TAX_RATE
    try:
        rate = tax_rate_percent if isinstance(tax_rate_percent, Decimal) else Decimal(str(tax_rate_percent))
    except (InvalidOperation, ValueError, TypeError):
        return DEFAULT_TAX_RATE
    if not rate.is_finite():
        return DEFAULT_TAX_RATE
    return max(rate, ZERO)


def line_amounts(item: Any, discount_mode: Any) -> tuple[Decimal, Decimal]:
    """
    Return (raw, priced) amounts for one item, both rounded to cents.

    The item's own discount only counts in LINE_ITEM and BOTH modes.
    """
    mode = _coerce_mode(discount_mode)
    quantity = getattr(item, "quantity", None)
    rate = getattr(item, "rate", None)
    raw = round_money(calculate_line_total(quantity, rate, 0))
    if mode is DiscountMode.OVERALL:
        return raw, raw
    priced = round_money(calculate_line_total(quantity, rate, getattr(item, "discount_percent", 0)))
    return raw, priced


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

def calculate_quote_totals(
    items: Iterable[Any],
    discount_mode: Any = DiscountMode.LINE_ITEM,
    overall_discount_percent: Any = 0,
    tax_rate_percent: Any = None,
) -> QuoteTotals:
    """
    Fold quote items into subtotal, discount, tax and grand total.

    Items may be ORM rows or draft models; only ``quantity``, ``rate`` and
    ``discount_percent`` are read.

    - LINE_ITEM: line discounts are netted into the subtotal, the reported
      discount is what they removed and is not subtracted again.
    - OVERALL: line discounts are ignored, the overall percentage comes off
      the subtotal before tax.
    - BOTH: line discounts first, then the overall percentage on the
      already discounted subtotal.
    """
    mode = _coerce_mode(discount_mode)
    tax_rate = _coerce_tax_rate(tax_rate_percent)

    subtotal = ZERO
    line_discounts = ZERO
    for item in items:
        raw, priced = line_amounts(item, mode)
        subtotal += priced
        line_discounts += raw - priced

    if mode is DiscountMode.LINE_ITEM:
        discount_amount = line_discounts
        net_amount = subtotal
    else:
        discount_amount = round_money(percent_of(subtotal, clamp_percent(overall_discount_percent)))
        net_amount = subtotal - discount_amount

    tax_amount = round_money(percent_of(net_amount, tax_rate))
    grand_total = max(net_amount + tax_amount, ZERO)

    return QuoteTotals(
        subtotal=round_money(subtotal),
        discount_amount=round_money(discount_amount),
        net_amount=round_money(net_amount),
        tax_amount=tax_amount,
        grand_total=round_money(grand_total),
    )


def category_breakdown(
    items: Iterable[Any],
    discount_mode: Any,
    categories: Mapping[Any, Optional[str]],
) -> list[CategorySubtotal]:
    """
    Group line amounts by product category.

    ``categories`` maps product id to category name. Amounts follow the same
    mode rule as the subtotal, so the rows add up to it. Largest first.
    """
    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for item in items:
        name = categories.get(getattr(item, "product_id", None)) or UNCATEGORIZED
        _, priced = line_amounts(item, discount_mode)
        totals[name] = totals.get(name, ZERO) + priced
        counts[name] = counts.get(name, 0) + 1

    rows = [
        CategorySubtotal(category_name=name, total=round_money(total), item_count=counts[name])
        for name, total in totals.items()
    ]
    rows.sort(key=lambda row: (-row.total, row.category_name))
    return rows


# ---------------------------------------------------------------------------
# Quote numbers
# ---------------------------------------------------------------------------

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(number: int, width: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)).rjust(width, "0")


def generate_quote_number(now: Optional[datetime] = None, prefix: str = "QT") -> str:
    """
    Build a human-readable quote number, e.g. ``QT-20261019-1FEVGVK2``.

    The suffix encodes the millisecond of the day plus two random characters.
    Uniqueness against existing quotes is enforced by the caller.
    """
    now = now or datetime.now(timezone.utc)
    ms_of_day = ((now.hour * 60 + now.minute) * 60 + now.second) * 1000 + now.microsecond // 1000
    suffix = _to_base36(ms_of_day, 6) + _to_base36(secrets.randbelow(36 * 36), 2)
    return f"{prefix}-{now:%Y%m%d}-{suffix}"
