"""
Payment schemas: gateway webhook event, fee breakdown and payment records.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from studio_booking.models.base.enums import PaymentStatus, PaymentType
from studio_booking.schemas.common.base import BaseResponseSchema, BaseSchema, FrozenSchema

__all__ = [
    "GATEWAY_STATUS_MAP",
    "PaymentWebhookEvent",
    "PaymentFeeBreakdown",
    "PaymentResponse",
]

# Gateway invoice statuses mapped onto the engine's payment status
GATEWAY_STATUS_MAP = {
    "PAID": PaymentStatus.PAID,
    "SETTLED": PaymentStatus.PAID,
    "COMPLETED": PaymentStatus.PAID,
    "PENDING": PaymentStatus.PENDING,
    "EXPIRED": PaymentStatus.FAILED,
    "CANCELLED": PaymentStatus.FAILED,
    "FAILED": PaymentStatus.FAILED,
    "PARTIALLY_PAID": PaymentStatus.PARTIAL,
    "REFUNDED": PaymentStatus.REFUNDED,
}


class PaymentWebhookEvent(BaseSchema):
    """
    Payment status change delivered by the gateway transport.

    ``payment_status`` accepts either an engine status or a raw gateway
    status such as ``SETTLED`` or ``EXPIRED``.
    """

    reservation_id: str
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    external_payment_id: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payment_type: Optional[PaymentType] = None
    paid_at: Optional[datetime] = None

    @field_validator("payment_status", mode="before")
    @classmethod
    def map_gateway_status(cls, v):
        if isinstance(v, str):
            mapped = GATEWAY_STATUS_MAP.get(v.strip().upper())
            if mapped is not None:
                return mapped
            return v.strip().lower()
        return v


class PaymentFeeBreakdown(FrozenSchema):
    base_amount: Decimal
    fee_amount: Decimal
    total_charged: Decimal
    net_amount: Decimal
    customer_pays_fees: bool


class PaymentResponse(BaseResponseSchema):
    reservation_id: str
    amount: Decimal
    payment_type: PaymentType
    status: PaymentStatus
    payment_method: Optional[str] = None
    external_payment_id: Optional[str] = None
    gateway_fee: Decimal = Decimal("0")
    net_amount: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
