"""
Money / quote calculator.

Pure functions turning a package price, add-on selections and a
pre-validated discount amount into a full price breakdown, plus the
``recompute`` step that keeps a booking draft consistent after every
mutation.
"""

from datetime import datetime
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from studio_booking.config.settings import settings
from studio_booking.core.exceptions import ValidationError
from studio_booking.models.base.enums import PaymentOption
from studio_booking.schemas.booking.quote import AddonLine, AddonSelection, BookingDraft, PriceBreakdown
from studio_booking.schemas.discount.discount import DiscountTerms
from studio_booking.services.discount.discount_validator import evaluate_discount
from studio_booking.utils.datetime_utils import DateTimeHelper

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def quantize_money(amount: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    return Decimal(amount).quantize(settings.booking.MONEY_QUANTUM, rounding=rounding)


def resolve_dp_percentage(dp_percentage: Optional[int]) -> int:
    return dp_percentage if dp_percentage else settings.booking.DEFAULT_DP_PERCENTAGE


def effective_unit_price(selection: AddonSelection) -> Decimal:
    """Package-specific price if configured, else the base price less any per-package percentage."""
    if selection.package_price is not None:
        return selection.package_price
    if selection.discount_percentage:
        return quantize_money(selection.unit_price * (HUNDRED - selection.discount_percentage) / HUNDRED)
    return selection.unit_price


def addon_contribution(selection: AddonSelection) -> Decimal:
    """Included add-ons are bundled into the package and contribute nothing."""
    if selection.is_included:
        return ZERO
    return quantize_money(effective_unit_price(selection) * selection.quantity)


def build_addon_lines(addons: Iterable[AddonSelection]) -> List[AddonLine]:
    lines = []
    for selection in addons:
        lines.append(
            AddonLine(
                addon_id=selection.addon_id,
                name=selection.name,
                quantity=selection.quantity,
                unit_price=ZERO if selection.is_included else effective_unit_price(selection),
                total_price=addon_contribution(selection),
                is_included=selection.is_included,
                is_facility=selection.is_facility,
            )
        )
    return lines


def calculate_tax(taxable_amount: Decimal, tax_rate: Optional[Decimal] = None) -> Decimal:
    rate = settings.booking.TAX_RATE if tax_rate is None else tax_rate
    if not rate:
        return ZERO
    return quantize_money(taxable_amount * rate / HUNDRED)


def calculate_deposit(
    total_amount: Decimal,
    payment_option: PaymentOption = PaymentOption.DEPOSIT,
    dp_percentage: Optional[int] = None,
) -> Decimal:
    """
    Minimum amount due upfront.

    Full payment: the whole total. Deposit: ``floor(total x pct / 100)``
    with pct defaulting to the configured deposit percentage.
    """
    if payment_option == PaymentOption.FULL:
        return total_amount
    pct = resolve_dp_percentage(dp_percentage)
    return quantize_money(total_amount * Decimal(pct) / HUNDRED, rounding=ROUND_FLOOR)


def validate_requested_deposit(
    total_amount: Decimal,
    requested_dp_amount: Decimal,
    dp_percentage: Optional[int] = None,
) -> Decimal:
    """
    Accept a customer-chosen deposit between the minimum and the total.

    Raises:
        ValidationError: If the amount is below the minimum or above the total
    """
    minimum = calculate_deposit(total_amount, PaymentOption.DEPOSIT, dp_percentage)
    requested = quantize_money(requested_dp_amount)
    if requested < minimum:
        raise ValidationError(
            f"Deposit must be at least {minimum:,.0f} "
            f"({resolve_dp_percentage(dp_percentage)}% of {total_amount:,.0f})",
            field="requested_dp_amount",
        )
    if requested > total_amount:
        raise ValidationError(
            f"Deposit cannot exceed the total amount of {total_amount:,.0f}",
            field="requested_dp_amount",
        )
    return requested


def calculate_quote(
    package_price: Decimal,
    addons: Iterable[AddonSelection] = (),
    discount_amount: Decimal = ZERO,
    payment_option: PaymentOption = PaymentOption.DEPOSIT,
    dp_percentage: Optional[int] = None,
    requested_dp_amount: Optional[Decimal] = None,
    tax_rate: Optional[Decimal] = None,
) -> PriceBreakdown:
    """
    Compute the full price breakdown.

    ``total = max(0, subtotal + tax - discount)``; a discount larger than
    what it applies to is reported clamped so the breakdown always adds up.

    Raises:
        ValidationError: If a requested deposit is outside the allowed range
    """
    package_price = quantize_money(package_price)
    lines = build_addon_lines(addons)

    facility_total = sum((line.total_price for line in lines if line.is_facility), ZERO)
    other_total = sum((line.total_price for line in lines if not line.is_facility), ZERO)
    addon_total = facility_total + other_total
    subtotal = package_price + addon_total

    tax_amount = calculate_tax(subtotal, tax_rate)
    gross = subtotal + tax_amount
    applied_discount = min(quantize_money(max(discount_amount, ZERO)), gross)
    total_amount = max(ZERO, gross - applied_discount)

    if payment_option == PaymentOption.FULL:
        dp_amount = total_amount
    elif requested_dp_amount is not None:
        dp_amount = validate_requested_deposit(total_amount, requested_dp_amount, dp_percentage)
    else:
        dp_amount = calculate_deposit(total_amount, payment_option, dp_percentage)

    return PriceBreakdown(
        package_price=package_price,
        lines=lines,
        facility_addon_total=facility_total,
        other_addon_total=other_total,
        addon_total=addon_total,
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=applied_discount,
        total_amount=total_amount,
        dp_percentage=resolve_dp_percentage(dp_percentage),
        dp_amount=dp_amount,
        remaining_amount=total_amount - dp_amount,
        payment_option=payment_option,
    )


# ---------------------------------------------------------------------------
# Draft recompute
# ---------------------------------------------------------------------------


def recompute(
    draft: BookingDraft,
    discount_terms: Optional[DiscountTerms] = None,
    now: Optional[datetime] = None,
) -> BookingDraft:
    """
    Re-derive everything that depends on the selections.

    Order: subtotal, discount re-validation against the new subtotal,
    totals, deposit. A discount that no longer validates is dropped and a
    notice is recorded; a requested deposit that fell out of range is
    reset to the minimum with a notice.
    """
    now = now or DateTimeHelper.studio_now()
    notices = list(draft.notices)
    discount_id = draft.discount_id
    discount_amount = ZERO

    base = calculate_quote(draft.package_price, draft.addons, dp_percentage=draft.dp_percentage)

    if discount_id is not None:
        if discount_terms is None or discount_terms.id != discount_id:
            notices.append("Discount removed: it is no longer available")
            discount_id = None
        else:
            validation = evaluate_discount(
                discount_terms,
                base.subtotal,
                draft.studio_id,
                now,
                package_amount=base.package_price,
                addon_amount=base.addon_total,
            )
            if validation.is_valid:
                discount_amount = validation.discount_amount
            else:
                notices.append(f"Discount {discount_terms.code} removed: {validation.error}")
                discount_id = None

    requested = draft.requested_dp_amount if draft.payment_option == PaymentOption.DEPOSIT else None
    try:
        breakdown = calculate_quote(
            draft.package_price,
            draft.addons,
            discount_amount=discount_amount,
            payment_option=draft.payment_option,
            dp_percentage=draft.dp_percentage,
            requested_dp_amount=requested,
        )
    except ValidationError as e:
        notices.append(f"Requested deposit reset: {e.message}")
        requested = None
        breakdown = calculate_quote(
            draft.package_price,
            draft.addons,
            discount_amount=discount_amount,
            payment_option=draft.payment_option,
            dp_percentage=draft.dp_percentage,
        )

    return draft.model_copy(
        update={
            "discount_id": discount_id,
            "requested_dp_amount": requested,
            "breakdown": breakdown,
            "notices": notices,
        }
    )


def add_addon(
    draft: BookingDraft,
    selection: AddonSelection,
    discount_terms: Optional[DiscountTerms] = None,
    now: Optional[datetime] = None,
) -> BookingDraft:
    return recompute(draft.model_copy(update={"addons": [*draft.addons, selection]}), discount_terms, now)


def remove_addon(
    draft: BookingDraft,
    addon_id: str,
    discount_terms: Optional[DiscountTerms] = None,
    now: Optional[datetime] = None,
) -> BookingDraft:
    remaining = [selection for selection in draft.addons if selection.addon_id != addon_id]
    return recompute(draft.model_copy(update={"addons": remaining}), discount_terms, now)


def apply_discount(
    draft: BookingDraft,
    discount_terms: DiscountTerms,
    now: Optional[datetime] = None,
) -> BookingDraft:
    return recompute(draft.model_copy(update={"discount_id": discount_terms.id}), discount_terms, now)


def remove_discount(draft: BookingDraft, now: Optional[datetime] = None) -> BookingDraft:
    return recompute(draft.model_copy(update={"discount_id": None}), None, now)


def set_payment_option(
    draft: BookingDraft,
    payment_option: PaymentOption,
    requested_dp_amount: Optional[Decimal] = None,
    discount_terms: Optional[DiscountTerms] = None,
    now: Optional[datetime] = None,
) -> BookingDraft:
    updated = draft.model_copy(
        update={"payment_option": payment_option, "requested_dp_amount": requested_dp_amount}
    )
    return recompute(updated, discount_terms, now)


__all__ = [
    "quantize_money",
    "effective_unit_price",
    "addon_contribution",
    "calculate_tax",
    "calculate_deposit",
    "validate_requested_deposit",
    "calculate_quote",
    "recompute",
    "add_addon",
    "remove_addon",
    "apply_discount",
    "remove_discount",
    "set_payment_option",
]
