"""
Discount validation.

Pure functions over an immutable ``DiscountTerms`` snapshot: the same
terms, subtotal and clock always give the same answer.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from studio_booking.config.settings import settings
from studio_booking.models.base.enums import DiscountScope, DiscountType
from studio_booking.schemas.discount.discount import DiscountTerms, DiscountValidation

ZERO = Decimal("0")


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _invalid(terms: DiscountTerms, error: str) -> DiscountValidation:
    return DiscountValidation(
        is_valid=False,
        discount_amount=ZERO,
        error=error,
        discount_id=terms.id,
        code=terms.code,
    )


def discount_base(
    terms: DiscountTerms,
    candidate_subtotal: Decimal,
    package_amount: Optional[Decimal] = None,
    addon_amount: Optional[Decimal] = None,
) -> Decimal:
    """Part of the booking the discount is computed from, per ``applies_to``."""
    if terms.applies_to == DiscountScope.PACKAGES and package_amount is not None:
        return package_amount
    if terms.applies_to == DiscountScope.ADDONS and addon_amount is not None:
        return addon_amount
    return candidate_subtotal


def compute_discount_amount(terms: DiscountTerms, base: Decimal) -> Decimal:
    """
    Percentage: ``value% x base`` rounded half-up, capped at ``maximum_discount``.
    Fixed: ``min(value, base)``.
    """
    if base <= ZERO:
        return ZERO

    if terms.type == DiscountType.PERCENTAGE:
        amount = (base * terms.value / Decimal("100")).quantize(
            settings.booking.MONEY_QUANTUM, rounding=ROUND_HALF_UP
        )
        if terms.maximum_discount is not None:
            amount = min(amount, terms.maximum_discount)
    else:
        amount = terms.value

    return min(amount, base)


def evaluate_discount(
    terms: DiscountTerms,
    candidate_subtotal: Decimal,
    studio_id: str,
    now: datetime,
    package_amount: Optional[Decimal] = None,
    addon_amount: Optional[Decimal] = None,
) -> DiscountValidation:
    """
    Check a discount against a candidate subtotal.

    Checks run in order and stop at the first failure: studio and active
    flag, validity window, usage limit, minimum amount.
    """
    if terms.studio_id != studio_id:
        return _invalid(terms, "Discount code is not valid for this studio")
    if not terms.is_active:
        return _invalid(terms, "Discount code is not active")

    now = _naive_utc(now)
    valid_from = _naive_utc(terms.valid_from)
    valid_until = _naive_utc(terms.valid_until)
    if valid_from is not None and now < valid_from:
        return _invalid(terms, "Discount code is not yet valid")
    if valid_until is not None and now > valid_until:
        return _invalid(terms, "Discount code has expired")

    if terms.usage_limit is not None and terms.used_count >= terms.usage_limit:
        return _invalid(terms, "Discount code usage limit has been reached")

    if candidate_subtotal < terms.minimum_amount:
        return _invalid(
            terms,
            f"Minimum booking amount for this discount is {terms.minimum_amount:,.0f}",
        )

    base = discount_base(terms, candidate_subtotal, package_amount, addon_amount)
    return DiscountValidation(
        is_valid=True,
        discount_amount=compute_discount_amount(terms, base),
        discount_id=terms.id,
        code=terms.code,
    )


__all__ = ["evaluate_discount", "compute_discount_amount", "discount_base"]
