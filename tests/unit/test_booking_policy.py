from datetime import date, time, timedelta
from decimal import Decimal
from types import SimpleNamespace

from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.services.booking import booking_policy

EVENT_DATE = date(2030, 6, 17)


def _reservation(status=ReservationStatus.PENDING, payment_status=PaymentStatus.PENDING, **overrides):
    data = {
        "status": status,
        "payment_status": payment_status,
        "reservation_date": EVENT_DATE,
        "dp_amount": Decimal("270000"),
        "remaining_amount": Decimal("270000"),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _days_before(days):
    return EVENT_DATE - timedelta(days=days)


def test_reschedule_allowed_exactly_three_days_before():
    decision = booking_policy.can_reschedule(_reservation(), _days_before(3))

    assert decision.allowed
    assert decision.days_remaining == 3


def test_reschedule_denied_two_days_before():
    decision = booking_policy.can_reschedule(_reservation(), _days_before(2))

    assert not decision.allowed
    assert "H-3" in decision.reason


def test_reschedule_denied_day_before_event():
    decision = booking_policy.can_reschedule(
        _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PARTIAL), _days_before(1)
    )

    assert not decision.allowed
    assert "H-3" in decision.reason


def test_closed_bookings_cannot_be_rescheduled():
    for status, payment in (
        (ReservationStatus.COMPLETED, PaymentStatus.PAID),
        (ReservationStatus.CANCELLED, PaymentStatus.CANCELLED),
    ):
        decision = booking_policy.can_reschedule(_reservation(status, payment), _days_before(30))
        assert not decision.allowed
        assert status.value in decision.reason


def test_only_closed_statuses_block_reschedule():
    for status in (ReservationStatus.IN_PROGRESS, ReservationStatus.NO_SHOW):
        decision = booking_policy.can_reschedule(_reservation(status, PaymentStatus.PARTIAL), _days_before(10))
        assert decision.allowed


def test_pending_cancellation_outside_window_keeps_deposit():
    info = booking_policy.cancellation_info(_reservation(), _days_before(10))

    assert info.can_cancel
    assert not info.deposit_forfeited
    assert info.forfeited_amount == Decimal("0")


def test_confirmed_cancellation_forfeits_deposit():
    info = booking_policy.cancellation_info(
        _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PARTIAL), _days_before(10)
    )

    assert info.can_cancel
    assert info.deposit_forfeited
    assert info.forfeited_amount == Decimal("270000")


def test_pending_cancellation_inside_window_is_forfeit():
    info = booking_policy.cancellation_info(_reservation(), _days_before(1))

    assert info.deposit_forfeited
    assert info.forfeited_amount == Decimal("0")


def test_completed_booking_cannot_be_cancelled():
    info = booking_policy.cancellation_info(
        _reservation(ReservationStatus.COMPLETED, PaymentStatus.PAID), _days_before(10)
    )

    assert not info.can_cancel


def test_complete_payment_needs_partial_payment():
    assert booking_policy.can_complete_payment(
        _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PARTIAL)
    ).allowed
    assert not booking_policy.can_complete_payment(
        _reservation(ReservationStatus.CONFIRMED, PaymentStatus.PAID)
    ).allowed
    assert not booking_policy.can_complete_payment(_reservation()).allowed


def test_timed_addons_flagged_when_date_changes():
    lines = [
        SimpleNamespace(facility_id="fac-1", start_time=time(13, 0), end_time=time(14, 0)),
        SimpleNamespace(facility_id=None, start_time=None, end_time=None),
    ]

    flagged = booking_policy.addons_needing_time_adjustment(
        lines, EVENT_DATE + timedelta(days=1), EVENT_DATE, time(13, 0), time(15, 0)
    )

    assert flagged == [lines[0]]


def test_timed_addons_flagged_when_outside_new_window():
    inside = SimpleNamespace(facility_id="fac-1", start_time=time(16, 0), end_time=time(17, 0))
    outside = SimpleNamespace(facility_id="fac-1", start_time=time(13, 0), end_time=time(14, 0))

    flagged = booking_policy.addons_needing_time_adjustment(
        [inside, outside], EVENT_DATE, EVENT_DATE, time(16, 0), time(18, 0)
    )

    assert flagged == [outside]


def test_deadline_labels():
    assert booking_policy.deadline_info(_reservation(), EVENT_DATE).deadline_label == "Event is today"
    assert booking_policy.deadline_info(_reservation(), _days_before(1)).is_urgent
    far = booking_policy.deadline_info(_reservation(), _days_before(20))
    assert not far.is_urgent and far.days_remaining == 20
    assert booking_policy.deadline_info(_reservation(), EVENT_DATE + timedelta(days=2)).is_past_deadline


def test_priority_ordering():
    assert booking_policy.booking_priority(_reservation(), _days_before(2)) == "urgent"
    assert booking_policy.booking_priority(_reservation(), _days_before(3)) == "high"
    assert booking_policy.booking_priority(_reservation(), _days_before(5)) == "medium"
    assert booking_policy.booking_priority(_reservation(), _days_before(30)) == "low"
