"""
Booking notification payloads.

Builds the flat data a messaging collaborator needs and decides whether a
reservation qualifies for a given kind of message. Formatting and sending
happen elsewhere.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from studio_booking.core.logging import get_logger
from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.schemas.notification.notification import BookingNotificationPayload
from studio_booking.services.booking.booking_policy import (
    booking_priority,
    days_until,
    lead_days,
    needs_payment,
)
from studio_booking.utils.datetime_utils import DateTimeHelper

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    CREATED = "created"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    PAYMENT_REMINDER = "payment_reminder"
    CONFIRMATION_REQUIRED = "confirmation_required"
    RESCHEDULE_NOTICE = "reschedule_notice"
    FEEDBACK_REQUEST = "feedback_request"


PAYMENT_REMINDER_WINDOW_DAYS = 7
FEEDBACK_WINDOW_DAYS = 7


class BookingNotificationService:
    """Stateless helper; every method takes the reservation and an optional ``today``."""

    def build_payload(
        self,
        reservation,
        event_kind: NotificationKind,
        today: Optional[date] = None,
    ) -> BookingNotificationPayload:
        today = today or DateTimeHelper.studio_today()
        customer = reservation.customer
        return BookingNotificationPayload(
            event_kind=NotificationKind(event_kind).value,
            reservation_id=reservation.id,
            booking_code=reservation.booking_code,
            customer_name=customer.full_name if customer else "Guest Customer",
            customer_phone=customer.phone if customer else "",
            customer_email=customer.email if customer else None,
            studio_name=reservation.studio.name if reservation.studio else "",
            package_name=reservation.package.name if reservation.package else "",
            reservation_date=reservation.reservation_date,
            time_range=reservation.time_range,
            total_amount=reservation.total_amount,
            dp_amount=reservation.dp_amount,
            remaining_amount=reservation.remaining_amount,
            status=reservation.status,
            payment_status=reservation.payment_status,
            days_until=days_until(reservation.reservation_date, today),
            priority=booking_priority(reservation, today),
        )

    def is_notification_eligible(
        self,
        reservation,
        event_kind: NotificationKind,
        today: Optional[date] = None,
    ) -> bool:
        """Whether a message of ``event_kind`` makes sense for the reservation today."""
        today = today or DateTimeHelper.studio_today()
        kind = NotificationKind(event_kind)
        status = reservation.status
        remaining = days_until(reservation.reservation_date, today)

        if reservation.customer is None or not reservation.customer.phone:
            return False

        if kind == NotificationKind.CREATED:
            return status == ReservationStatus.PENDING
        if kind == NotificationKind.CONFIRMED:
            return status == ReservationStatus.CONFIRMED
        if kind == NotificationKind.CANCELLED:
            return status == ReservationStatus.CANCELLED
        if kind == NotificationKind.RESCHEDULED:
            return status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
        if kind == NotificationKind.PAYMENT_REMINDER:
            return (
                status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
                and reservation.payment_status != PaymentStatus.FAILED
                and needs_payment(reservation)
                and 0 <= remaining <= PAYMENT_REMINDER_WINDOW_DAYS
            )
        if kind == NotificationKind.CONFIRMATION_REQUIRED:
            return status == ReservationStatus.PENDING and remaining >= 0
        if kind == NotificationKind.RESCHEDULE_NOTICE:
            return status == ReservationStatus.CONFIRMED and 0 < remaining <= lead_days()
        if kind == NotificationKind.FEEDBACK_REQUEST:
            return status == ReservationStatus.COMPLETED and -FEEDBACK_WINDOW_DAYS <= remaining < 0
        return False

    def pending_reminders(self, reservations, today: Optional[date] = None) -> List[BookingNotificationPayload]:
        """Reminder payloads for staff follow-up, most urgent first."""
        today = today or DateTimeHelper.studio_today()
        reminder_kinds = (
            NotificationKind.PAYMENT_REMINDER,
            NotificationKind.CONFIRMATION_REQUIRED,
            NotificationKind.RESCHEDULE_NOTICE,
            NotificationKind.FEEDBACK_REQUEST,
        )
        payloads = [
            self.build_payload(reservation, kind, today)
            for reservation in reservations
            for kind in reminder_kinds
            if self.is_notification_eligible(reservation, kind, today)
        ]
        order: Dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
        payloads.sort(key=lambda p: (order.get(p.priority or "low", 3), p.reservation_date))
        logger.debug("Reminders collected", extra={"count": len(payloads)})
        return payloads


__all__ = ["BookingNotificationService", "NotificationKind"]
