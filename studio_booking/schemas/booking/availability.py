"""
Availability schemas.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from studio_booking.schemas.common.base import BaseSchema

__all__ = ["ConflictingBooking", "SlotCheck", "TimeSlot"]


class ConflictingBooking(BaseSchema):
    reservation_id: Optional[str] = None
    booking_code: Optional[str] = None
    customer_name: Optional[str] = None
    time_range: str


class SlotCheck(BaseSchema):
    """Single window query result."""

    available: bool
    conflicting_bookings: List[ConflictingBooking] = Field(default_factory=list)
    reason: Optional[str] = None


class TimeSlot(BaseSchema):
    """One start time produced by sliding the booking duration over opening hours."""

    time: str
    end_time: str
    available: bool
    is_past: bool = False
    is_blocked: bool = False
    conflicting_booking: Optional[ConflictingBooking] = None
