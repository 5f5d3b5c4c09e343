from datetime import date, datetime, time
from decimal import Decimal

import pytest

from studio_booking.config.settings import settings
from studio_booking.core.permissions import ActorContext
from studio_booking.models import BlockedSlot, Discount, Payment, Reservation
from studio_booking.models.base.enums import (
    ActorRole,
    PaymentStatus,
    ReservationEventType,
    ReservationStatus,
)
from studio_booking.schemas.booking.quote import QuoteRequest
from studio_booking.schemas.booking.reservation import AddonTimeAdjustment, RescheduleRequest
from studio_booking.schemas.payment.payment import PaymentWebhookEvent
from studio_booking.services.base.service_result import ErrorCode

EVENT_DATE = date(2030, 6, 17)
NOW = datetime(2030, 6, 1, 9, 0)
GUEST_PHONE = "081234567890"


def _book(reservation_service, actor, request):
    result = reservation_service.create_reservation(actor, request, now=NOW)
    assert result.is_success, result.message
    return result.data


def _webhook(reservation_id, amount, external_id, status="PAID"):
    return PaymentWebhookEvent(
        reservation_id=reservation_id,
        payment_status=status,
        amount=Decimal(amount),
        external_payment_id=external_id,
    )


class TestCreateReservation:
    def test_priced_booking_with_discount(self, reservation_service, guest, booking_request, discount, print_addon, session):
        request = booking_request(addons=[{"addon_id": print_addon.id, "quantity": 2}], discount_code="hemat10")

        result = reservation_service.create_reservation(guest, request, now=NOW)

        assert result.is_success
        booking = result.data
        assert booking.subtotal == Decimal("600000")
        assert booking.discount_amount == Decimal("60000")
        assert booking.total_amount == Decimal("540000")
        assert booking.dp_amount == Decimal("270000")
        assert booking.remaining_amount == Decimal("270000")
        assert booking.end_time == time(12, 0)
        assert booking.status == ReservationStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.booking_code == "STD20300601001"
        assert session.get(Discount, discount.id).used_count == 1

    def test_booking_codes_increase(self, reservation_service, guest, booking_request):
        first = _book(reservation_service, guest, booking_request(start=time(10, 0)))
        second = _book(reservation_service, guest, booking_request(start=time(13, 0)))

        assert first.booking_code == "STD20300601001"
        assert second.booking_code == "STD20300601002"

    def test_included_addon_comes_with_package(self, reservation_service, guest, booking_request, album_addon):
        booking = _book(reservation_service, guest, booking_request())

        assert [line.addon_id for line in booking.addons] == [album_addon.id]
        assert booking.addons[0].is_included
        assert booking.total_amount == Decimal("500000")

    def test_overlapping_slot_is_rejected(self, reservation_service, guest, booking_request, session):
        _book(reservation_service, guest, booking_request(start=time(10, 0)))

        result = reservation_service.create_reservation(guest, booking_request(start=time(11, 0)), now=NOW)

        assert result.error_code == ErrorCode.CONFLICT
        assert "already booked" in result.message
        assert session.query(Reservation).count() == 1

    def test_touching_slot_is_accepted(self, reservation_service, guest, booking_request):
        _book(reservation_service, guest, booking_request(start=time(10, 0)))

        result = reservation_service.create_reservation(guest, booking_request(start=time(12, 0)), now=NOW)

        assert result.is_success
        assert (result.data.start_time, result.data.end_time) == (time(12, 0), time(14, 0))

    def test_blocked_window_is_rejected(self, reservation_service, guest, booking_request, session, studio):
        session.add(
            BlockedSlot(studio_id=studio.id, slot_date=EVENT_DATE, start_time=time(10, 0), end_time=time(11, 0))
        )
        session.commit()

        result = reservation_service.create_reservation(guest, booking_request(start=time(10, 30)), now=NOW)

        assert result.error_code == ErrorCode.CONFLICT
        assert "blocked" in result.message

    def test_facility_addon_conflict(self, reservation_service, guest, booking_request, makeup_addon):
        _book(
            reservation_service,
            guest,
            booking_request(
                start=time(10, 0),
                addons=[{"addon_id": makeup_addon.id, "start_time": time(14, 0), "duration_hours": 2}],
            ),
        )

        result = reservation_service.create_reservation(
            guest,
            booking_request(
                start=time(15, 0),
                addons=[{"addon_id": makeup_addon.id, "start_time": time(15, 0), "duration_hours": 2}],
            ),
            now=NOW,
        )

        assert result.error_code == ErrorCode.CONFLICT

    def test_hourly_facility_addon_is_priced_by_hours(self, reservation_service, guest, booking_request, makeup_addon):
        booking = _book(
            reservation_service,
            guest,
            booking_request(addons=[{"addon_id": makeup_addon.id, "start_time": time(10, 0), "duration_hours": 2}]),
        )

        line = booking.addons[0]
        assert line.quantity == 2
        assert line.total_price == Decimal("200000")
        assert line.end_time == time(12, 0)
        assert booking.facility_addon_total == Decimal("200000")
        assert booking.other_addon_total == Decimal("0")

    def test_past_time_is_rejected(self, reservation_service, guest, booking_request):
        result = reservation_service.create_reservation(
            guest, booking_request(), now=datetime(2030, 6, 17, 11, 0)
        )

        assert result.error_code == ErrorCode.VALIDATION_ERROR

    def test_outside_operating_hours(self, reservation_service, guest, booking_request):
        result = reservation_service.create_reservation(guest, booking_request(start=time(20, 0)), now=NOW)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "start_time"

    def test_exhausted_discount_is_an_error(self, reservation_service, guest, booking_request, discount, session):
        discount.usage_limit = 1
        discount.used_count = 1
        session.commit()

        result = reservation_service.create_reservation(guest, booking_request(discount_id=discount.id), now=NOW)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "discount_id"

    def test_guest_cannot_record_payment(self, reservation_service, guest, booking_request):
        result = reservation_service.create_reservation(guest, booking_request(recorded_amount=250000), now=NOW)

        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_recorded_payment_below_deposit(self, reservation_service, admin, booking_request):
        result = reservation_service.create_reservation(admin, booking_request(recorded_amount=100000), now=NOW)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.error.field == "recorded_payment"

    def test_recorded_deposit_and_full_payment(self, reservation_service, admin, booking_request):
        deposit = _book(reservation_service, admin, booking_request(start=time(10, 0), recorded_amount=250000))
        full = _book(reservation_service, admin, booking_request(start=time(13, 0), recorded_amount=500000))

        assert deposit.payment_status == PaymentStatus.PARTIAL
        assert full.payment_status == PaymentStatus.PAID
        assert deposit.status == full.status == ReservationStatus.PENDING

    def test_staff_of_another_studio_cannot_record(self, reservation_service, booking_request, other_studio):
        outsider = ActorContext(role=ActorRole.CS, studio_id=other_studio.id, user_id="cs-9")

        result = reservation_service.create_reservation(outsider, booking_request(recorded_amount=250000), now=NOW)

        assert result.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_created_notification_is_published(self, reservation_service, guest, booking_request, notifications):
        booking = _book(reservation_service, guest, booking_request())

        assert [n.event_kind for n in notifications] == ["created"]
        assert notifications[0].booking_code == booking.booking_code

    def test_no_notification_without_phone(
        self, reservation_service, guest, admin, booking_request, notifications, session
    ):
        booking = _book(reservation_service, guest, booking_request())
        session.get(Reservation, booking.id).customer.phone = ""
        session.commit()

        reservation_service.cancel(admin, booking.id, today=NOW.date())

        assert [n.event_kind for n in notifications] == ["created"]


class TestQuote:
    def test_quote_reports_invalid_deposit_as_notice(self, reservation_service, studio, package):
        request = QuoteRequest(studio_id=studio.id, package_id=package.id, requested_dp_amount=Decimal("100000"))

        result = reservation_service.quote(request, now=NOW)

        assert result.is_success
        assert result.data.breakdown.dp_amount == Decimal("250000")
        assert result.data.notices
        assert result.metadata["package_name"] == "Family Portrait"

    def test_quote_with_discount_code(self, reservation_service, studio, package, discount):
        request = QuoteRequest(studio_id=studio.id, package_id=package.id, discount_code="HEMAT10")

        breakdown = reservation_service.quote(request, now=NOW).data.breakdown

        assert breakdown.discount_amount == Decimal("50000")
        assert breakdown.total_amount == Decimal("450000")


class TestPaymentWebhook:
    def test_deposit_then_remaining(self, reservation_service, guest, booking_request, notifications):
        booking = _book(reservation_service, guest, booking_request())

        first = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-1"))
        assert first.data.status == ReservationStatus.CONFIRMED
        assert first.data.payment_status == PaymentStatus.PARTIAL
        assert first.metadata["noop"] is False

        second = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-2"))
        assert second.data.status == ReservationStatus.CONFIRMED
        assert second.data.payment_status == PaymentStatus.PAID
        assert [n.event_kind for n in notifications] == ["created", "confirmed"]

    def test_duplicate_delivery_is_noop(self, reservation_service, guest, admin, booking_request, session):
        booking = _book(reservation_service, guest, booking_request())
        reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-1"))
        events_before = len(reservation_service.get_events(admin, booking.id).data)

        again = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-1"))

        assert again.is_success
        assert again.metadata["noop"] is True
        assert again.data.payment_status == PaymentStatus.PARTIAL
        assert len(reservation_service.get_events(admin, booking.id).data) == events_before
        assert session.query(Payment).filter(Payment.reservation_id == booking.id).count() == 1

    def test_repeated_deposit_without_reference_is_recorded_once(self, reservation_service, guest, booking_request, session):
        booking = _book(reservation_service, guest, booking_request())

        first = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, None))
        again = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, None))

        assert first.data.payment_status == PaymentStatus.PARTIAL
        assert again.metadata["noop"] is True
        assert again.data.payment_status == PaymentStatus.PARTIAL
        amounts = [p.amount for p in session.query(Payment).filter(Payment.reservation_id == booking.id)]
        assert amounts == [Decimal("250000")]

    def test_paid_event_without_amount_settles_booking(self, reservation_service, guest, booking_request, session):
        booking = _book(reservation_service, guest, booking_request())

        result = reservation_service.handle_payment_webhook(
            PaymentWebhookEvent(reservation_id=booking.id, payment_status="paid")
        )

        assert result.data.status == ReservationStatus.CONFIRMED
        assert result.data.payment_status == PaymentStatus.PAID
        payments = session.query(Payment).filter(Payment.reservation_id == booking.id).all()
        assert [(p.amount, p.payment_type.value) for p in payments] == [(Decimal("500000"), "full")]

    def test_partial_event_without_amount_records_deposit(self, reservation_service, guest, booking_request, session):
        booking = _book(reservation_service, guest, booking_request())

        deposit = reservation_service.handle_payment_webhook(
            PaymentWebhookEvent(reservation_id=booking.id, payment_status="partial")
        )
        settled = reservation_service.handle_payment_webhook(
            PaymentWebhookEvent(reservation_id=booking.id, payment_status="paid")
        )

        assert deposit.data.payment_status == PaymentStatus.PARTIAL
        assert settled.data.payment_status == PaymentStatus.PAID
        amounts = sorted(p.amount for p in session.query(Payment).filter(Payment.reservation_id == booking.id))
        assert amounts == [Decimal("250000"), Decimal("250000")]

    def test_gateway_fee_is_recorded(self, reservation_service, guest, booking_request, session, monkeypatch):
        monkeypatch.setattr(settings.booking, "GATEWAY_FEE_PERCENTAGE", Decimal("2"))
        booking = _book(reservation_service, guest, booking_request())

        reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-1"))

        payment = session.query(Payment).filter(Payment.reservation_id == booking.id).one()
        assert payment.gateway_fee == Decimal("5000")
        assert payment.net_amount == Decimal("245000")

    def test_payment_for_cancelled_booking(self, reservation_service, guest, booking_request):
        booking = _book(reservation_service, guest, booking_request())
        reservation_service.cancel(guest, booking.id, contact_phone=GUEST_PHONE, today=NOW.date())

        result = reservation_service.handle_payment_webhook(_webhook(booking.id, 250000, "inv-1"))

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_unknown_reservation(self, reservation_service):
        result = reservation_service.handle_payment_webhook(_webhook("missing", 250000, "inv-1"))

        assert result.error_code == ErrorCode.NOT_FOUND


class TestLifecycle:
    def test_full_lifecycle(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=500000))

        confirmed = reservation_service.confirm(admin, booking.id)
        started = reservation_service.start_session(admin, booking.id)
        completed = reservation_service.complete(admin, booking.id)
        again = reservation_service.complete(admin, booking.id)

        assert confirmed.data.status == ReservationStatus.CONFIRMED
        assert started.data.status == ReservationStatus.IN_PROGRESS
        assert completed.data.status == ReservationStatus.COMPLETED
        assert again.is_success and again.metadata["noop"] is True

        kinds = [e.event_type for e in reservation_service.get_events(admin, booking.id).data]
        assert kinds[0] == ReservationEventType.CREATED
        assert len(kinds) == 4

        cancelled = reservation_service.cancel(admin, booking.id, today=NOW.date())
        assert cancelled.error_code == ErrorCode.INVALID_STATE

    def test_start_requires_settled_payment(self, reservation_service, admin, booking_request, session):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=250000))
        reservation_service.confirm(admin, booking.id)

        denied = reservation_service.start_session(admin, booking.id)
        assert denied.error_code == ErrorCode.INVALID_STATE

        settled = reservation_service.complete_payment(admin, booking.id, payment_method="cash")
        assert settled.data.payment_status == PaymentStatus.PAID
        amounts = sorted(p.amount for p in session.query(Payment).filter(Payment.reservation_id == booking.id))
        assert amounts == [Decimal("250000"), Decimal("250000")]

        assert reservation_service.start_session(admin, booking.id).is_success

    def test_confirm_without_payment_is_denied(self, reservation_service, admin, guest, booking_request):
        booking = _book(reservation_service, guest, booking_request())

        result = reservation_service.confirm(admin, booking.id)

        assert not result.is_success
        assert result.error_code == ErrorCode.INVALID_STATE

    def test_no_show(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=250000))
        reservation_service.confirm(admin, booking.id)

        result = reservation_service.mark_no_show(admin, booking.id, reason="Did not arrive")

        assert result.data.status == ReservationStatus.NO_SHOW

    def test_staff_of_another_studio_cannot_transition(self, reservation_service, admin, booking_request, other_studio):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=250000))
        outsider = ActorContext(role=ActorRole.CS, studio_id=other_studio.id, user_id="cs-9")

        assert reservation_service.confirm(outsider, booking.id).error_code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_stats(self, reservation_service, admin, cs, guest, booking_request):
        _book(reservation_service, guest, booking_request(start=time(10, 0)))
        paid = _book(reservation_service, admin, booking_request(start=time(13, 0), recorded_amount=500000))
        reservation_service.confirm(admin, paid.id)

        stats = reservation_service.get_stats(cs).data

        assert stats.total == 2
        assert stats.by_status == {"pending": 1, "confirmed": 1}

    def test_outstanding_follows_payments(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=250000))
        reservation_service.confirm(admin, booking.id)

        before = reservation_service.get_stats(admin).data
        reservation_service.complete_payment(admin, booking.id, payment_method="cash")
        after = reservation_service.get_stats(admin).data

        assert before.outstanding == Decimal("250000")
        assert after.outstanding == Decimal("0")
        assert after.total_revenue == Decimal("500000")


class TestCancel:
    def test_pending_cancel_releases_discount(self, reservation_service, guest, booking_request, discount, session):
        booking = _book(reservation_service, guest, booking_request(discount_code="HEMAT10"))
        assert session.get(Discount, discount.id).used_count == 1

        result = reservation_service.cancel(
            guest, booking.id, reason="Changed plans", today=NOW.date(), contact_phone=GUEST_PHONE
        )

        assert result.data.status == ReservationStatus.CANCELLED
        assert result.data.payment_status == PaymentStatus.CANCELLED
        assert result.metadata["cancellation"]["can_cancel"] is True
        assert session.get(Discount, discount.id).used_count == 0

    def test_confirmed_cancel_keeps_discount_usage(self, reservation_service, admin, booking_request, discount, session):
        booking = _book(reservation_service, admin, booking_request(discount_code="HEMAT10", recorded_amount=225000))
        reservation_service.confirm(admin, booking.id)

        result = reservation_service.cancel(admin, booking.id, today=NOW.date())

        assert result.data.payment_status == PaymentStatus.PARTIAL
        assert result.metadata["cancellation"]["deposit_forfeited"] is True
        assert session.get(Discount, discount.id).used_count == 1

    def test_cancel_twice_is_noop(self, reservation_service, guest, booking_request, notifications):
        booking = _book(reservation_service, guest, booking_request())
        reservation_service.cancel(guest, booking.id, contact_phone=GUEST_PHONE, today=NOW.date())

        again = reservation_service.cancel(guest, booking.id, contact_phone=GUEST_PHONE, today=NOW.date())

        assert again.is_success and again.metadata["noop"] is True
        assert [n.event_kind for n in notifications] == ["created", "cancelled"]

    def test_only_owner_or_staff_may_cancel(self, reservation_service, booking_request, studio, package):
        from studio_booking.schemas.booking.reservation import CustomerInfo

        owner = ActorContext(role=ActorRole.ANONYMOUS, user_id="user-9")
        stranger = ActorContext(role=ActorRole.ANONYMOUS, user_id="user-10")
        request = booking_request(
            customer=CustomerInfo(full_name="Ayu Lestari", phone="081234567890", user_id="user-9")
        )
        booking = _book(reservation_service, owner, request)
        assert not booking.is_guest_booking

        assert reservation_service.cancel(stranger, booking.id, today=NOW.date()).error_code == (
            ErrorCode.INSUFFICIENT_PERMISSIONS
        )
        assert reservation_service.cancel(owner, booking.id, today=NOW.date()).is_success

    def test_guest_cancels_with_booking_phone(self, reservation_service, guest, booking_request):
        booking = _book(reservation_service, guest, booking_request())

        without_phone = reservation_service.cancel(guest, booking.id, today=NOW.date())
        wrong_phone = reservation_service.cancel(guest, booking.id, today=NOW.date(), contact_phone="089999999999")
        formatted = reservation_service.cancel(guest, booking.id, today=NOW.date(), contact_phone="0812-3456-7890")

        assert without_phone.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS
        assert wrong_phone.error_code == ErrorCode.INSUFFICIENT_PERMISSIONS
        assert formatted.data.status == ReservationStatus.CANCELLED

    def test_cancellation_info(self, reservation_service, guest, booking_request):
        booking = _book(reservation_service, guest, booking_request())

        info = reservation_service.get_cancellation_info(booking.id, today=NOW.date()).data

        assert info.can_cancel
        assert not info.deposit_forfeited
        assert info.days_remaining == 16


class TestReschedule:
    def _book_with_makeup(self, reservation_service, admin, booking_request, makeup_addon):
        return _book(
            reservation_service,
            admin,
            booking_request(
                start=time(13, 0),
                addons=[{"addon_id": makeup_addon.id, "start_time": time(13, 0), "duration_hours": 1}],
            ),
        )

    def test_facility_addon_flagged_and_adjusted(self, reservation_service, admin, booking_request, makeup_addon, notifications):
        booking = self._book_with_makeup(reservation_service, admin, booking_request, makeup_addon)
        line_id = booking.addons[0].id

        moved = reservation_service.reschedule(
            admin,
            booking.id,
            RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(16, 0), reason="Client request"),
            now=NOW,
        )

        assert moved.is_success
        assert (moved.data.start_time, moved.data.end_time) == (time(16, 0), time(18, 0))
        assert moved.data.total_amount == booking.total_amount
        assert moved.metadata["addons_needing_time_adjustment"] == [line_id]
        assert moved.data.addons[0].needs_time_adjustment
        assert "Rescheduled" in moved.data.notes
        assert notifications[-1].event_kind == "rescheduled"

        adjusted = reservation_service.adjust_addon_time(
            admin, booking.id, AddonTimeAdjustment(reservation_addon_id=line_id, start_time=time(16, 0))
        )

        line = adjusted.data.addons[0]
        assert not line.needs_time_adjustment
        assert (line.start_time, line.end_time) == (time(16, 0), time(17, 0))

        kinds = [e.event_type for e in reservation_service.get_events(admin, booking.id).data]
        assert ReservationEventType.RESCHEDULED in kinds
        assert ReservationEventType.ADDON_TIME_ADJUSTED in kinds

    def test_addon_inside_new_window_is_not_flagged(self, reservation_service, admin, booking_request, makeup_addon):
        booking = self._book_with_makeup(reservation_service, admin, booking_request, makeup_addon)

        moved = reservation_service.reschedule(
            admin, booking.id, RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(12, 30)), now=NOW
        )

        assert moved.metadata["addons_needing_time_adjustment"] == []

    def test_flagged_addon_releases_facility(self, reservation_service, admin, booking_request, makeup_addon):
        booking = self._book_with_makeup(reservation_service, admin, booking_request, makeup_addon)
        reservation_service.reschedule(
            admin, booking.id, RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(16, 0)), now=NOW
        )

        result = reservation_service.create_reservation(
            admin,
            booking_request(
                start=time(10, 0),
                addons=[{"addon_id": makeup_addon.id, "start_time": time(13, 0), "duration_hours": 1}],
            ),
            now=NOW,
        )

        assert result.is_success, result.message

    def test_too_close_to_event(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request())

        result = reservation_service.reschedule(
            admin,
            booking.id,
            RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(15, 0)),
            now=datetime(2030, 6, 16, 9, 0),
        )

        assert result.error_code == ErrorCode.BUSINESS_RULE_VIOLATION
        assert "H-3" in result.message

    def test_cannot_move_onto_another_booking(self, reservation_service, admin, booking_request):
        _book(reservation_service, admin, booking_request(start=time(10, 0)))
        second = _book(reservation_service, admin, booking_request(start=time(14, 0)))

        result = reservation_service.reschedule(
            admin, second.id, RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(11, 0)), now=NOW
        )

        assert result.error_code == ErrorCode.CONFLICT

    def test_can_keep_own_window(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request(start=time(10, 0)))

        result = reservation_service.reschedule(
            admin, booking.id, RescheduleRequest(reservation_date=EVENT_DATE, start_time=time(11, 0)), now=NOW
        )

        assert result.is_success


class TestDelete:
    def test_delete_unpaid_booking(self, reservation_service, admin, guest, booking_request, discount, session):
        booking = _book(reservation_service, guest, booking_request(discount_code="HEMAT10"))

        result = reservation_service.delete_reservation(admin, booking.id)

        assert result.is_success
        assert reservation_service.get_reservation(booking.id).error_code == ErrorCode.NOT_FOUND
        assert session.get(Discount, discount.id).used_count == 0

    def test_paid_booking_cannot_be_deleted(self, reservation_service, admin, booking_request):
        booking = _book(reservation_service, admin, booking_request(recorded_amount=250000))

        result = reservation_service.delete_reservation(admin, booking.id)

        assert result.error_code == ErrorCode.BUSINESS_RULE_VIOLATION
        assert reservation_service.get_reservation(booking.booking_code).is_success

    def test_lookup_by_booking_code(self, reservation_service, guest, booking_request):
        booking = _book(reservation_service, guest, booking_request())

        assert reservation_service.get_reservation(booking.booking_code).data.id == booking.id


@pytest.mark.parametrize("role", [ActorRole.ADMIN, ActorRole.CS])
def test_staff_can_read_events(reservation_service, guest, booking_request, studio, role):
    booking = _book(reservation_service, guest, booking_request())
    actor = ActorContext(role=role, studio_id=studio.id, user_id="staff-1")

    assert reservation_service.get_events(actor, booking.id).is_success
