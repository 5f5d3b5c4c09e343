"""
Policy decision schemas.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from studio_booking.schemas.common.base import BaseSchema

__all__ = ["PolicyDecision", "CancellationInfo", "DeadlineInfo"]


class PolicyDecision(BaseSchema):
    allowed: bool
    reason: str
    days_remaining: Optional[int] = None


class CancellationInfo(BaseSchema):
    can_cancel: bool
    deposit_forfeited: bool
    forfeited_amount: Decimal = Decimal("0")
    days_remaining: int
    message: str


class DeadlineInfo(BaseSchema):
    days_remaining: int
    is_past_deadline: bool
    is_urgent: bool
    deadline_label: str
