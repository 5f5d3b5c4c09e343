from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.services.notification.booking_notification_service import (
    BookingNotificationService,
    NotificationKind,
)

EVENT_DATE = date(2030, 6, 17)


def _reservation(status=ReservationStatus.PENDING, payment_status=PaymentStatus.PENDING, phone="081234567890", **kw):
    data = {
        "id": "res-1",
        "booking_code": "STD20300601001",
        "status": status,
        "payment_status": payment_status,
        "reservation_date": EVENT_DATE,
        "time_range": "10:00 - 12:00",
        "total_amount": Decimal("540000"),
        "dp_amount": Decimal("270000"),
        "remaining_amount": Decimal("270000"),
        "customer": SimpleNamespace(full_name="Ayu Lestari", phone=phone, email=None),
        "studio": SimpleNamespace(name="Lumiere Studio"),
        "package": SimpleNamespace(name="Family Portrait"),
    }
    data.update(kw)
    return SimpleNamespace(**data)


service = BookingNotificationService()


def test_payload_is_flat():
    payload = service.build_payload(_reservation(), NotificationKind.CREATED, EVENT_DATE - timedelta(days=5))

    assert payload.event_kind == "created"
    assert payload.customer_phone == "081234567890"
    assert payload.package_name == "Family Portrait"
    assert payload.days_until == 5
    assert payload.priority == "medium"


def test_customer_without_phone_gets_nothing():
    assert not service.is_notification_eligible(_reservation(phone=""), NotificationKind.CREATED, EVENT_DATE)


def test_status_events_match_current_status():
    today = EVENT_DATE - timedelta(days=10)
    confirmed = _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PARTIAL)

    assert service.is_notification_eligible(confirmed, NotificationKind.CONFIRMED, today)
    assert not service.is_notification_eligible(confirmed, NotificationKind.CREATED, today)
    assert service.is_notification_eligible(confirmed, NotificationKind.RESCHEDULED, today)


def test_payment_reminder_window():
    res = _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PARTIAL)

    assert service.is_notification_eligible(res, NotificationKind.PAYMENT_REMINDER, EVENT_DATE - timedelta(days=7))
    assert not service.is_notification_eligible(res, NotificationKind.PAYMENT_REMINDER, EVENT_DATE - timedelta(days=8))

    paid = _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PAID, remaining_amount=Decimal("0"))
    assert not service.is_notification_eligible(paid, NotificationKind.PAYMENT_REMINDER, EVENT_DATE)


def test_feedback_after_completion():
    done = _reservation(ReservationStatus.COMPLETED, PaymentStatus.PAID, remaining_amount=Decimal("0"))

    assert service.is_notification_eligible(done, NotificationKind.FEEDBACK_REQUEST, EVENT_DATE + timedelta(days=1))
    assert not service.is_notification_eligible(done, NotificationKind.FEEDBACK_REQUEST, EVENT_DATE)


def test_pending_reminders_most_urgent_first():
    soon = _reservation(id="res-soon", reservation_date=date(2030, 6, 3))
    later = _reservation(id="res-later", reservation_date=date(2030, 6, 20))

    reminders = service.pending_reminders([later, soon], today=date(2030, 6, 1))

    assert reminders[0].reservation_id == "res-soon"
    assert reminders[0].priority == "urgent"
    assert {r.event_kind for r in reminders} >= {"payment_reminder", "confirmation_required"}
