"""
Payment gateway fee calculation.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from studio_booking.config.settings import settings
from studio_booking.core.exceptions import ValidationError
from studio_booking.schemas.payment.payment import PaymentFeeBreakdown
from studio_booking.services.pricing.quote_calculator import quantize_money

FEE_TYPE_PERCENTAGE = "percentage"
FEE_TYPE_FIXED = "fixed"


def calculate_payment_fee(
    amount: Decimal,
    fee_type: Optional[str] = None,
    fee_percentage: Optional[Decimal] = None,
    fee_amount: Optional[Decimal] = None,
    customer_pays_fees: Optional[bool] = None,
) -> PaymentFeeBreakdown:
    """
    Split a payment into what the customer is charged and what the studio keeps.

    When the customer pays fees they are added on top of ``amount`` and the
    studio nets the full amount; otherwise the studio absorbs them. Fee terms
    left out fall back to the configured gateway fee.

    Raises:
        ValidationError: If the amount or fee configuration is negative
    """
    if amount < 0:
        raise ValidationError("Payment amount cannot be negative", field="amount")

    if fee_type is None:
        fee_type = settings.booking.GATEWAY_FEE_TYPE
        fee_percentage = settings.booking.GATEWAY_FEE_PERCENTAGE if fee_percentage is None else fee_percentage
        fee_amount = settings.booking.GATEWAY_FEE_AMOUNT if fee_amount is None else fee_amount

    if fee_type == FEE_TYPE_FIXED:
        fee = Decimal(fee_amount or 0)
    else:
        fee = Decimal(amount) * Decimal(fee_percentage or 0) / Decimal("100")
    if fee < 0:
        raise ValidationError("Payment fee cannot be negative", field="fee")
    fee = quantize_money(fee, rounding=ROUND_HALF_UP)

    pays = settings.booking.CUSTOMER_PAYS_FEES if customer_pays_fees is None else customer_pays_fees
    base = quantize_money(amount)
    total_charged = base + fee if pays else base

    return PaymentFeeBreakdown(
        base_amount=base,
        fee_amount=fee,
        total_charged=total_charged,
        net_amount=total_charged - fee,
        customer_pays_fees=pays,
    )


def format_fee(fee_type: str, fee_percentage: Optional[Decimal] = None, fee_amount: Optional[Decimal] = None) -> str:
    if fee_type == FEE_TYPE_FIXED:
        return f"{settings.booking.CURRENCY} {Decimal(fee_amount or 0):,.0f}"
    return f"{Decimal(fee_percentage or 0):.2f}%"


__all__ = ["calculate_payment_fee", "format_fee", "FEE_TYPE_PERCENTAGE", "FEE_TYPE_FIXED"]
