"""
Flat notification payload handed to the messaging collaborator.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Optional

from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.schemas.common.base import FrozenSchema

__all__ = ["BookingNotificationPayload"]


class BookingNotificationPayload(FrozenSchema):
    """Denormalized reservation data for template-based messages."""

    event_kind: str
    reservation_id: str
    booking_code: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    studio_name: str
    package_name: str
    reservation_date: Date
    time_range: str
    total_amount: Decimal
    dp_amount: Decimal
    remaining_amount: Decimal
    status: ReservationStatus
    payment_status: PaymentStatus
    days_until: Optional[int] = None
    priority: Optional[str] = None
