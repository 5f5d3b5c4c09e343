"""
Pricing schemas: add-on selections, the price breakdown and the booking
draft that ``recompute`` keeps consistent.
"""

from __future__ import annotations

from datetime import time as Time
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_validator

from studio_booking.models.base.enums import PaymentOption
from studio_booking.schemas.common.base import BaseSchema, FrozenSchema

__all__ = [
    "AddonSelection",
    "AddonLine",
    "PriceBreakdown",
    "BookingDraft",
    "AddonRequest",
    "QuoteRequest",
]


class AddonSelection(FrozenSchema):
    """
    One add-on as priced for a booking.

    For hourly add-ons ``unit_price`` is the hourly rate and ``quantity``
    is the number of booked hours.
    """

    addon_id: Optional[str] = None
    name: str = ""
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    is_included: bool = False
    package_price: Optional[Decimal] = Field(default=None, ge=0)
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    is_facility: bool = False
    facility_id: Optional[str] = None
    is_hourly: bool = False
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None


class AddonLine(FrozenSchema):
    addon_id: Optional[str] = None
    name: str = ""
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    is_included: bool = False
    is_facility: bool = False


class PriceBreakdown(FrozenSchema):
    """Full financial breakdown of a booking."""

    package_price: Decimal
    lines: List[AddonLine] = Field(default_factory=list)
    facility_addon_total: Decimal = Decimal("0")
    other_addon_total: Decimal = Decimal("0")
    addon_total: Decimal = Decimal("0")
    subtotal: Decimal
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal
    dp_percentage: int
    dp_amount: Decimal
    remaining_amount: Decimal
    payment_option: PaymentOption = PaymentOption.DEPOSIT


class BookingDraft(FrozenSchema):
    """
    In-progress booking. Every mutation goes through ``recompute`` so the
    breakdown, discount and deposit always agree with the selections.
    """

    studio_id: str
    package_id: Optional[str] = None
    package_price: Decimal = Field(..., ge=0)
    dp_percentage: Optional[int] = Field(default=None, gt=0, le=100)
    addons: List[AddonSelection] = Field(default_factory=list)
    discount_id: Optional[str] = None
    payment_option: PaymentOption = PaymentOption.DEPOSIT
    requested_dp_amount: Optional[Decimal] = Field(default=None, ge=0)
    breakdown: Optional[PriceBreakdown] = None
    notices: List[str] = Field(default_factory=list)


class AddonRequest(BaseSchema):
    """Add-on chosen by the customer; prices always come from the catalogue."""

    addon_id: str
    quantity: int = Field(default=1, ge=1)
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None
    duration_hours: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_window(self) -> "AddonRequest":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("Add-on end_time must be after start_time")
        return self


class QuoteRequest(BaseSchema):
    studio_id: str
    package_id: str
    addons: List[AddonRequest] = Field(default_factory=list)
    discount_id: Optional[str] = None
    discount_code: Optional[str] = None
    payment_option: PaymentOption = PaymentOption.DEPOSIT
    requested_dp_amount: Optional[Decimal] = Field(default=None, ge=0)
