"""
Reschedule and cancellation policy.

Everything here is pure: the caller passes ``today`` (studio local date)
and a reservation-like object exposing ``status``, ``payment_status``,
``reservation_date``, ``dp_amount`` and ``remaining_amount``.
"""

from datetime import date, time
from decimal import Decimal
from typing import Iterable, List

from studio_booking.config.settings import settings
from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.schemas.booking.policy import CancellationInfo, DeadlineInfo, PolicyDecision
from studio_booking.services.availability.availability_checker import TimeWindow, addon_window_fits

CLOSED_STATUSES = (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED)
CANCELLABLE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
# Statuses at or past confirmation; a deposit taken here is never returned
COMMITTED_STATUSES = (
    ReservationStatus.CONFIRMED,
    ReservationStatus.IN_PROGRESS,
    ReservationStatus.COMPLETED,
    ReservationStatus.NO_SHOW,
)
MONEY_COLLECTED = (PaymentStatus.PARTIAL, PaymentStatus.PAID)


def lead_days() -> int:
    return settings.booking.RESCHEDULE_LEAD_DAYS


def days_until(reservation_date: date, today: date) -> int:
    """Whole calendar days from ``today`` to the event; negative once it has passed."""
    return (reservation_date - today).days


def can_reschedule(reservation, today: date) -> PolicyDecision:
    """
    H-3 rule: a booking can be moved until three days before the event.

    Exactly three days remaining is still allowed.
    """
    remaining = days_until(reservation.reservation_date, today)

    if reservation.status in CLOSED_STATUSES:
        return PolicyDecision(
            allowed=False,
            reason=f"Cannot reschedule a booking that is already {reservation.status.value}",
            days_remaining=remaining,
        )
    if remaining < lead_days():
        return PolicyDecision(
            allowed=False,
            reason=f"Reschedule deadline (H-{lead_days()}) has passed",
            days_remaining=remaining,
        )
    return PolicyDecision(
        allowed=True,
        reason=f"{remaining} days left to reschedule",
        days_remaining=remaining,
    )


def can_complete_payment(reservation) -> PolicyDecision:
    if reservation.status == ReservationStatus.CANCELLED:
        return PolicyDecision(allowed=False, reason="Booking has been cancelled")
    if reservation.payment_status == PaymentStatus.PAID:
        return PolicyDecision(allowed=False, reason="Booking is already paid in full")
    if reservation.payment_status != PaymentStatus.PARTIAL:
        return PolicyDecision(allowed=False, reason="Deposit has not been paid yet")
    if reservation.remaining_amount is not None and reservation.remaining_amount <= 0:
        return PolicyDecision(allowed=False, reason="Nothing left to pay")
    return PolicyDecision(allowed=True, reason="Remaining balance can be settled")


def cancellation_info(reservation, today: date) -> CancellationInfo:
    """
    What a cancellation would cost the customer.

    The deposit is forfeited once the booking reached confirmation, or
    when cancelling inside the H-3 window. A pending booking cancelled
    earlier loses nothing.
    """
    remaining = days_until(reservation.reservation_date, today)

    if reservation.status not in CANCELLABLE_STATUSES:
        return CancellationInfo(
            can_cancel=False,
            deposit_forfeited=False,
            days_remaining=remaining,
            message=f"Booking is already {reservation.status.value}",
        )

    forfeited = reservation.status in COMMITTED_STATUSES or remaining < lead_days()
    collected = reservation.payment_status in MONEY_COLLECTED
    amount = Decimal(reservation.dp_amount or 0) if forfeited and collected else Decimal("0")

    if forfeited and collected:
        message = f"Cancelling forfeits the deposit of {amount:,.0f}; it will not be refunded"
    elif forfeited:
        message = "Cancelling now forfeits any deposit paid for this booking"
    else:
        message = "Booking can be cancelled without losing the deposit"

    return CancellationInfo(
        can_cancel=True,
        deposit_forfeited=forfeited,
        forfeited_amount=amount,
        days_remaining=remaining,
        message=message,
    )


def addons_needing_time_adjustment(
    addons: Iterable,
    new_date: date,
    old_date: date,
    new_start: time,
    new_end: time,
) -> List:
    """
    Timed facility add-ons whose window no longer fits after a move.

    A date change invalidates every timed window; otherwise a window must
    still lie inside the new primary window.
    """
    primary = TimeWindow.from_times(new_start, new_end)
    flagged = []
    for line in addons:
        if not line.facility_id or line.start_time is None or line.end_time is None:
            continue
        if new_date != old_date:
            flagged.append(line)
            continue
        if not addon_window_fits(TimeWindow.from_times(line.start_time, line.end_time), primary):
            flagged.append(line)
    return flagged


def deadline_info(reservation, today: date) -> DeadlineInfo:
    remaining = days_until(reservation.reservation_date, today)

    if remaining < 0:
        label, urgent, past = f"Event passed {abs(remaining)} days ago", True, True
    elif remaining == 0:
        label, urgent, past = "Event is today", True, False
    elif remaining == 1:
        label, urgent, past = "Event is tomorrow", True, False
    elif remaining <= lead_days():
        label, urgent, past = f"{remaining} days left (H-{remaining})", True, False
    else:
        label, urgent, past = f"{remaining} days left", False, False

    return DeadlineInfo(
        days_remaining=remaining,
        is_past_deadline=past,
        is_urgent=urgent,
        deadline_label=label,
    )


def needs_payment(reservation) -> bool:
    return reservation.payment_status != PaymentStatus.PAID and (reservation.remaining_amount or 0) > 0


def booking_priority(reservation, today: date) -> str:
    """urgent / high / medium / low, used to order staff follow-ups."""
    remaining = days_until(reservation.reservation_date, today)
    if remaining <= 2:
        return "urgent"
    if remaining == lead_days() and needs_payment(reservation):
        return "high"
    if remaining <= 7:
        return "medium"
    return "low"


__all__ = [
    "days_until",
    "can_reschedule",
    "can_complete_payment",
    "cancellation_info",
    "addons_needing_time_adjustment",
    "deadline_info",
    "booking_priority",
    "needs_payment",
]
