"""
Reservation request and response schemas.
"""

from __future__ import annotations

from datetime import date as Date, datetime, time as Time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from studio_booking.models.base.enums import (
    PaymentOption,
    PaymentStatus,
    PaymentType,
    ReservationEventType,
    ReservationStatus,
)
from studio_booking.schemas.booking.quote import AddonRequest
from studio_booking.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseSchema

__all__ = [
    "CustomerInfo",
    "RecordedPayment",
    "ReservationCreate",
    "RescheduleRequest",
    "AddonTimeAdjustment",
    "StatusActionRequest",
    "CancelRequest",
    "ReservationAddonResponse",
    "ReservationResponse",
    "ReservationEventResponse",
    "ReservationStats",
]


def normalize_phone_number(value):
    """Keep digits and a leading plus: ``0812-3456 7890`` -> ``081234567890``."""
    if isinstance(value, str):
        return "".join(ch for ch in value if ch.isdigit() or ch == "+")
    return value


class CustomerInfo(BaseSchema):
    full_name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., pattern=r"^\+?[0-9]{8,15}$")
    email: Optional[EmailStr] = None
    user_id: Optional[str] = None

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        return normalize_phone_number(v)


class RecordedPayment(BaseSchema):
    """Money already collected when staff create a booking manually."""

    amount: Decimal = Field(..., gt=0)
    payment_type: PaymentType
    payment_method: Optional[str] = None
    external_payment_id: Optional[str] = None


class ReservationCreate(BaseCreateSchema):
    """Booking submission (customer checkout or manual staff booking)."""

    studio_id: str
    package_id: str
    reservation_date: Date
    start_time: Time
    customer: CustomerInfo
    addons: List[AddonRequest] = Field(default_factory=list)
    discount_id: Optional[str] = None
    discount_code: Optional[str] = None
    payment_option: PaymentOption = PaymentOption.DEPOSIT
    requested_dp_amount: Optional[Decimal] = Field(default=None, ge=0)
    recorded_payment: Optional[RecordedPayment] = None
    special_requests: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class RescheduleRequest(BaseSchema):
    reservation_date: Date
    start_time: Time
    end_time: Optional[Time] = None
    reason: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_window(self) -> "RescheduleRequest":
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AddonTimeAdjustment(BaseSchema):
    """New window for a flagged facility add-on; duration must stay the same."""

    reservation_addon_id: str
    start_time: Time


class StatusActionRequest(BaseSchema):
    reason: Optional[str] = Field(default=None, max_length=500)


class CancelRequest(StatusActionRequest):
    """Guests without an account identify their booking by the phone it was made with."""

    contact_phone: Optional[str] = None

    @field_validator("contact_phone", mode="before")
    @classmethod
    def normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone_number(v)


class ReservationAddonResponse(BaseResponseSchema):
    addon_id: str
    facility_id: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    is_included: bool
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None
    duration_hours: Optional[int] = None
    needs_time_adjustment: bool = False


class ReservationResponse(BaseResponseSchema):
    booking_code: str
    studio_id: str
    package_id: str
    customer_id: str
    discount_id: Optional[str] = None
    user_id: Optional[str] = None
    is_guest_booking: bool
    reservation_date: Date
    start_time: Time
    end_time: Time
    total_duration: int
    package_price: Decimal
    facility_addon_total: Decimal
    other_addon_total: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    dp_amount: Decimal
    remaining_amount: Decimal
    status: ReservationStatus
    payment_status: PaymentStatus
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    addons: List[ReservationAddonResponse] = Field(default_factory=list)


class ReservationEventResponse(BaseSchema):
    id: str
    sequence: int
    event_type: ReservationEventType
    occurred_at: datetime
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None


class ReservationStats(BaseSchema):
    by_status: Dict[str, int]
    total: int
    total_revenue: Decimal
    outstanding: Decimal
