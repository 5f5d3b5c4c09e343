"""
Reservation orchestration.

Every mutating operation runs as one transaction: row locks, the conflict
re-check, the write and the side effects emitted by the state machine
commit together or not at all. Business-rule denials come back as failed
``ServiceResult`` objects carrying the reason.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from studio_booking.config.settings import settings
from studio_booking.core.exceptions import (
    BookingConflictError,
    ErrorCode as AppErrorCode,
    PolicyViolationError,
    ResourceNotFoundError,
    ValidationError,
)
from studio_booking.core.permissions import ActorContext, PermissionDenied, ensure_studio_scope
from studio_booking.models.base.enums import (
    PaymentOption,
    PaymentStatus,
    PaymentType,
    ReservationEventType,
    ReservationStatus,
)
from studio_booking.models.booking.reservation import Reservation, ReservationAddon
from studio_booking.models.catalog.addon import Addon, PackageAddon
from studio_booking.models.catalog.package import Package
from studio_booking.models.payment.payment import Payment
from studio_booking.repositories.booking.reservation_event_repository import ReservationEventRepository
from studio_booking.repositories.booking.reservation_repository import ReservationRepository
from studio_booking.repositories.catalog.catalog_repository import AddonRepository, PackageRepository
from studio_booking.repositories.catalog.studio_repository import BlockedSlotRepository, StudioRepository
from studio_booking.repositories.customer.customer_repository import CustomerRepository
from studio_booking.repositories.discount.discount_repository import DiscountRepository
from studio_booking.repositories.payment.payment_repository import PaymentRepository
from studio_booking.schemas.booking.policy import CancellationInfo
from studio_booking.schemas.booking.quote import AddonRequest, AddonSelection, BookingDraft, QuoteRequest
from studio_booking.schemas.booking.reservation import (
    AddonTimeAdjustment,
    ReservationCreate,
    ReservationEventResponse,
    ReservationResponse,
    ReservationStats,
    RescheduleRequest,
    normalize_phone_number,
)
from studio_booking.schemas.discount.discount import DiscountTerms
from studio_booking.schemas.notification.notification import BookingNotificationPayload
from studio_booking.schemas.payment.payment import PaymentWebhookEvent
from studio_booking.services.availability.availability_checker import (
    TimeWindow,
    find_conflicts,
    resolve_day_hours,
)
from studio_booking.services.availability.availability_service import AvailabilityService
from studio_booking.services.base.base_service import BaseService
from studio_booking.services.base.service_result import ServiceResult
from studio_booking.services.base.transaction_manager import TransactionContext
from studio_booking.services.booking import booking_policy, reservation_state
from studio_booking.services.booking.reservation_state import (
    CascadePaymentRecords,
    IncrementDiscountUsage,
    RecordEvent,
    ReleaseDiscountUsage,
    ReservationState,
    SetTimestamp,
    TransitionResult,
)
from studio_booking.services.notification.booking_notification_service import (
    BookingNotificationService,
    NotificationKind,
)
from studio_booking.services.payment.payment_fee_calculator import calculate_payment_fee
from studio_booking.services.pricing.quote_calculator import (
    calculate_deposit,
    recompute,
    validate_requested_deposit,
)
from studio_booking.utils.datetime_utils import DateTimeHelper

_DEFAULT = object()

Notifier = Callable[[BookingNotificationPayload], None]


class ReservationService(BaseService[ReservationRepository]):
    """
    Booking lifecycle: quote, create, status transitions, payment webhook,
    reschedule and add-on time adjustment.

    Args:
        db_session: SQLAlchemy session owned by the caller
        notifier: Optional callable receiving notification payloads after commit
        isolation_level: Overrides ``BOOKING_ISOLATION_LEVEL``; ``None`` uses
            the connection default
    """

    def __init__(
        self,
        db_session: Session,
        repository: Optional[ReservationRepository] = None,
        notifier: Optional[Notifier] = None,
        isolation_level=_DEFAULT,
    ):
        super().__init__(repository or ReservationRepository(db_session), db_session)
        self.events = ReservationEventRepository(db_session)
        self.payments = PaymentRepository(db_session)
        self.discounts = DiscountRepository(db_session)
        self.studios = StudioRepository(db_session)
        self.blocked_slots = BlockedSlotRepository(db_session)
        self.packages = PackageRepository(db_session)
        self.addon_catalog = AddonRepository(db_session)
        self.customers = CustomerRepository(db_session)
        self.availability = AvailabilityService(db_session, self.repository)
        self.notifications = BookingNotificationService()
        self.notifier = notifier
        self.published: List[BookingNotificationPayload] = []
        self.isolation_level = (
            settings.booking.BOOKING_ISOLATION_LEVEL if isolation_level is _DEFAULT else isolation_level
        )
        self.tx.add_after_commit_hook(self._publish_notifications)

    # -------------------------------------------------------------------------
    # Quote
    # -------------------------------------------------------------------------

    def quote(self, request: QuoteRequest, now: Optional[datetime] = None) -> ServiceResult[BookingDraft]:
        """Price a prospective booking without reserving anything."""
        try:
            package, draft, _ = self._build_draft(
                studio_id=request.studio_id,
                package_id=request.package_id,
                addon_requests=request.addons,
                discount_id=request.discount_id,
                discount_code=request.discount_code,
                payment_option=request.payment_option,
                requested_dp_amount=request.requested_dp_amount,
                now=now,
            )
            return ServiceResult.success(draft, metadata={"package_name": package.name})
        except Exception as e:
            return self._handle_exception(e, "calculate quote", request.package_id)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_reservation(
        self,
        actor: ActorContext,
        data: ReservationCreate,
        now: Optional[datetime] = None,
    ) -> ServiceResult[ReservationResponse]:
        """
        Book a slot.

        The studio row is locked before the conflict re-check, so two
        requests for the same window serialize and the second one gets a
        conflict.
        """
        now = now or DateTimeHelper.studio_now()
        try:
            is_manual = data.recorded_payment is not None or data.internal_notes is not None
            if is_manual:
                ensure_studio_scope(actor, data.studio_id)

            if DateTimeHelper.combine(data.reservation_date, data.start_time) < now:
                raise ValidationError("Cannot book a time in the past", field="start_time")

            with self.transaction(self.isolation_level) as ctx:
                studio = self.studios.lock_for_booking(data.studio_id)

                package, draft, selections = self._build_draft(
                    studio_id=data.studio_id,
                    package_id=data.package_id,
                    addon_requests=data.addons,
                    discount_id=data.discount_id,
                    discount_code=data.discount_code,
                    payment_option=data.payment_option,
                    requested_dp_amount=data.requested_dp_amount,
                    now=now,
                    strict=True,
                )
                breakdown = draft.breakdown

                end_time = self._end_time(data.start_time, package.duration_minutes, "start_time")
                self._ensure_within_hours(studio, data.reservation_date, data.start_time, end_time)
                self._ensure_slot_free(data.studio_id, data.reservation_date, data.start_time, end_time)
                self._ensure_facilities_free(selections, data.reservation_date)

                payment_status = self._initial_payment_status(data, breakdown.total_amount, draft.dp_percentage)
                transition = reservation_state.initial_state(payment_status, has_discount=bool(draft.discount_id))
                if not transition.allowed:
                    raise PolicyViolationError(transition.reason, error_code=AppErrorCode.INVALID_STATE)

                customer = self.customers.get_or_create(
                    full_name=data.customer.full_name,
                    phone=data.customer.phone,
                    email=data.customer.email,
                    user_id=data.customer.user_id,
                )

                reservation = Reservation(
                    booking_code=self.repository.next_booking_code(
                        settings.booking.BOOKING_CODE_PREFIX, now.date()
                    ),
                    studio_id=data.studio_id,
                    package_id=package.id,
                    customer_id=customer.id,
                    discount_id=draft.discount_id,
                    user_id=actor.user_id if actor.is_staff else None,
                    is_guest_booking=data.customer.user_id is None,
                    reservation_date=data.reservation_date,
                    start_time=data.start_time,
                    end_time=end_time,
                    total_duration=package.duration_minutes,
                    package_price=breakdown.package_price,
                    facility_addon_total=breakdown.facility_addon_total,
                    other_addon_total=breakdown.other_addon_total,
                    subtotal=breakdown.subtotal,
                    tax_amount=breakdown.tax_amount,
                    discount_amount=breakdown.discount_amount,
                    total_amount=breakdown.total_amount,
                    dp_amount=breakdown.dp_amount,
                    remaining_amount=breakdown.remaining_amount,
                    status=transition.new_state.status,
                    payment_status=transition.new_state.payment_status,
                    special_requests=data.special_requests,
                    notes=data.notes,
                    internal_notes=data.internal_notes if actor.is_staff else None,
                )
                for selection, line in zip(selections, breakdown.lines):
                    reservation.addons.append(
                        ReservationAddon(
                            addon_id=selection.addon_id,
                            facility_id=selection.facility_id,
                            quantity=selection.quantity,
                            unit_price=line.unit_price,
                            total_price=line.total_price,
                            is_included=selection.is_included,
                            start_time=selection.start_time,
                            end_time=selection.end_time,
                            duration_hours=selection.quantity if selection.start_time else None,
                        )
                    )
                if data.recorded_payment is not None:
                    recorded = data.recorded_payment
                    reservation.payments.append(
                        Payment(
                            amount=recorded.amount,
                            payment_type=recorded.payment_type,
                            status=PaymentStatus.PAID,
                            payment_method=recorded.payment_method,
                            external_payment_id=recorded.external_payment_id,
                            gateway_fee=Decimal("0"),
                            net_amount=recorded.amount,
                            paid_at=DateTimeHelper.utc_now(),
                        )
                    )
                self.repository.create(reservation)

                self._apply_transition(reservation, None, transition, actor)
                ctx.outbox.append({"reservation_id": reservation.id, "kind": NotificationKind.CREATED})

                self._log_operation(
                    "Reservation created",
                    reservation.id,
                    {"booking_code": reservation.booking_code, "total_amount": str(reservation.total_amount)},
                )

            result = ServiceResult.success(
                ReservationResponse.model_validate(reservation),
                message="Booking created",
            )
            if draft.notices:
                result.add_metadata("notices", draft.notices)
            return result
        except Exception as e:
            return self._handle_exception(e, "create reservation", data.studio_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_reservation(self, reservation_id: str) -> ServiceResult[ReservationResponse]:
        try:
            reservation = self.repository.find_by_id(reservation_id)
            if reservation is None:
                reservation = self.repository.find_by_booking_code(reservation_id)
            if reservation is None:
                return ServiceResult.not_found("Reservation", reservation_id)
            return ServiceResult.success(ReservationResponse.model_validate(reservation))
        except Exception as e:
            return self._handle_exception(e, "get reservation", reservation_id)

    def get_events(self, actor: ActorContext, reservation_id: str) -> ServiceResult[List[ReservationEventResponse]]:
        try:
            reservation = self.repository.get_by_id(reservation_id)
            ensure_studio_scope(actor, reservation.studio_id)
            events = self.events.list_for_reservation(reservation_id)
            return ServiceResult.success([ReservationEventResponse.model_validate(e) for e in events])
        except Exception as e:
            return self._handle_exception(e, "get reservation events", reservation_id)

    def get_stats(self, actor: ActorContext, studio_id: Optional[str] = None) -> ServiceResult[ReservationStats]:
        """Counts per status and revenue; cs staff always see their own studio."""
        try:
            if studio_id is None and not actor.is_admin:
                studio_id = actor.studio_id
            if studio_id is not None:
                ensure_studio_scope(actor, studio_id)
            elif not actor.is_admin:
                raise PermissionDenied("Admin access required", role=actor.role)

            by_status = self.repository.count_by_status(studio_id)
            revenue = self.repository.revenue_for_studio(studio_id)
            return ServiceResult.success(
                ReservationStats(
                    by_status=by_status,
                    total=sum(by_status.values()),
                    total_revenue=Decimal(str(revenue["total_revenue"])),
                    outstanding=Decimal(str(revenue["outstanding"])),
                )
            )
        except Exception as e:
            return self._handle_exception(e, "get reservation stats", studio_id)

    def get_cancellation_info(
        self,
        reservation_id: str,
        today: Optional[date] = None,
    ) -> ServiceResult[CancellationInfo]:
        try:
            reservation = self.repository.get_by_id(reservation_id)
            return ServiceResult.success(
                booking_policy.cancellation_info(reservation, today or DateTimeHelper.studio_today())
            )
        except Exception as e:
            return self._handle_exception(e, "get cancellation info", reservation_id)

    # -------------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------------

    def confirm(self, actor: ActorContext, reservation_id: str, reason: Optional[str] = None):
        return self._transition(
            actor,
            reservation_id,
            "confirm reservation",
            lambda state, _: reservation_state.confirm(state),
            reason=reason,
            notify=NotificationKind.CONFIRMED,
        )

    def start_session(self, actor: ActorContext, reservation_id: str, reason: Optional[str] = None):
        return self._transition(
            actor,
            reservation_id,
            "start session",
            lambda state, _: reservation_state.start(state),
            reason=reason,
        )

    def complete(self, actor: ActorContext, reservation_id: str, reason: Optional[str] = None):
        return self._transition(
            actor,
            reservation_id,
            "complete reservation",
            lambda state, _: reservation_state.complete(state),
            reason=reason,
        )

    def mark_no_show(self, actor: ActorContext, reservation_id: str, reason: Optional[str] = None):
        return self._transition(
            actor,
            reservation_id,
            "mark no-show",
            lambda state, _: reservation_state.mark_no_show(state),
            reason=reason,
        )

    def cancel(
        self,
        actor: ActorContext,
        reservation_id: str,
        reason: Optional[str] = None,
        today: Optional[date] = None,
        contact_phone: Optional[str] = None,
    ) -> ServiceResult[ReservationResponse]:
        """
        Cancel a booking. Staff of the studio and the customer who owns
        the booking may cancel; a guest booking is cancelled by quoting the
        phone number it was made with.
        """
        today = today or DateTimeHelper.studio_today()
        info: Dict[str, CancellationInfo] = {}

        def authorize(actor: ActorContext, reservation: Reservation) -> None:
            self._authorize_owner_or_staff(actor, reservation, contact_phone)

        def decide(state: ReservationState, reservation: Reservation) -> TransitionResult:
            info["cancellation"] = booking_policy.cancellation_info(reservation, today)
            return reservation_state.cancel(
                state,
                reason=reason,
                release_on_confirmed=settings.booking.RELEASE_DISCOUNT_ON_CONFIRMED_CANCEL,
            )

        result = self._transition(
            actor,
            reservation_id,
            "cancel reservation",
            decide,
            reason=reason,
            notify=NotificationKind.CANCELLED,
            authorize=authorize,
        )
        if result.is_success and "cancellation" in info:
            result.add_metadata("cancellation", info["cancellation"].model_dump(mode="json"))
        return result

    def complete_payment(
        self,
        actor: ActorContext,
        reservation_id: str,
        payment_method: Optional[str] = None,
        external_payment_id: Optional[str] = None,
    ) -> ServiceResult[ReservationResponse]:
        """Record the remaining balance as paid."""

        def settle(reservation: Reservation) -> None:
            amount = reservation.total_amount - self.payments.total_paid(reservation.id)
            if amount <= 0:
                return
            self.payments.create(
                Payment(
                    reservation_id=reservation.id,
                    amount=amount,
                    payment_type=PaymentType.REMAINING,
                    status=PaymentStatus.PAID,
                    payment_method=payment_method,
                    external_payment_id=external_payment_id,
                    gateway_fee=Decimal("0"),
                    net_amount=amount,
                    paid_at=DateTimeHelper.utc_now(),
                )
            )

        return self._transition(
            actor,
            reservation_id,
            "complete payment",
            lambda state, _: reservation_state.complete_payment(state),
            on_applied=settle,
        )

    def handle_payment_webhook(
        self,
        event: PaymentWebhookEvent,
        actor: Optional[ActorContext] = None,
    ) -> ServiceResult[ReservationResponse]:
        """
        Apply a gateway payment status change.

        Delivering the same event twice changes nothing the second time.
        """
        actor = actor or ActorContext.system()
        try:
            with self.transaction(self.isolation_level) as ctx:
                reservation = self._lock_reservation(event.reservation_id)
                before = ReservationState.of(reservation)

                self._record_gateway_payment(reservation, event)
                settles = self.payments.total_paid(reservation.id) >= reservation.total_amount

                transition = reservation_state.apply_payment_event(before, event.payment_status, settles)
                if not transition.allowed:
                    raise PolicyViolationError(
                        transition.reason,
                        reservation_id=reservation.id,
                        error_code=AppErrorCode.INVALID_STATE,
                    )
                if not transition.is_noop:
                    self._apply_transition(reservation, before, transition, actor)
                    if transition.new_state.status != before.status:
                        ctx.outbox.append({"reservation_id": reservation.id, "kind": NotificationKind.CONFIRMED})

                self._log_operation(
                    "Payment webhook applied",
                    reservation.id,
                    {"payment_status": event.payment_status.value, "noop": transition.is_noop},
                )

            return ServiceResult.success(
                ReservationResponse.model_validate(reservation),
                message=transition.reason,
                metadata={"noop": transition.is_noop},
            )
        except Exception as e:
            return self._handle_exception(e, "handle payment webhook", event.reservation_id)

    # -------------------------------------------------------------------------
    # Reschedule
    # -------------------------------------------------------------------------

    def reschedule(
        self,
        actor: ActorContext,
        reservation_id: str,
        data: RescheduleRequest,
        now: Optional[datetime] = None,
    ) -> ServiceResult[ReservationResponse]:
        """
        Move a booking to a new date or time.

        Financial fields are never touched. Timed facility add-ons that no
        longer fit are flagged for staff to re-select.
        """
        now = now or DateTimeHelper.studio_now()
        try:
            with self.transaction(self.isolation_level) as ctx:
                existing = self.repository.get_by_id(reservation_id)
                ensure_studio_scope(actor, existing.studio_id)
                studio = self.studios.lock_for_booking(existing.studio_id)
                reservation = self._lock_reservation(reservation_id)

                decision = booking_policy.can_reschedule(reservation, now.date())
                if not decision.allowed:
                    raise PolicyViolationError(decision.reason, reservation_id=reservation.id)

                if DateTimeHelper.combine(data.reservation_date, data.start_time) < now:
                    raise ValidationError("Cannot reschedule to a time in the past", field="start_time")

                if data.end_time is not None:
                    new_end = data.end_time
                else:
                    new_end = self._end_time(data.start_time, reservation.total_duration, "start_time")
                self._ensure_within_hours(studio, data.reservation_date, data.start_time, new_end)
                self._ensure_slot_free(
                    reservation.studio_id,
                    data.reservation_date,
                    data.start_time,
                    new_end,
                    exclude_reservation_id=reservation.id,
                )

                before = self._schedule_snapshot(reservation)
                old_date = reservation.reservation_date
                old_range = reservation.time_range

                flagged = booking_policy.addons_needing_time_adjustment(
                    reservation.addons, data.reservation_date, old_date, data.start_time, new_end
                )
                for line in flagged:
                    line.needs_time_adjustment = True

                reservation.reservation_date = data.reservation_date
                reservation.start_time = data.start_time
                reservation.end_time = new_end
                reservation.total_duration = DateTimeHelper.duration_minutes(data.start_time, new_end)
                reservation.notes = self._append_note(
                    reservation.notes,
                    f"[Rescheduled {now.strftime('%Y-%m-%d %H:%M')}] "
                    f"{old_date.isoformat()} {old_range} -> "
                    f"{data.reservation_date.isoformat()} {reservation.time_range}"
                    + (f": {data.reason}" if data.reason else ""),
                )
                self.db.flush()

                after = self._schedule_snapshot(reservation)
                after["flagged_addons"] = [line.id for line in flagged]
                self.events.record(
                    reservation.id,
                    ReservationEventType.RESCHEDULED,
                    occurred_at=DateTimeHelper.utc_now(),
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                    before=before,
                    after=after,
                    reason=data.reason,
                )
                ctx.outbox.append({"reservation_id": reservation.id, "kind": NotificationKind.RESCHEDULED})

                self._log_operation(
                    "Reservation rescheduled",
                    reservation.id,
                    {"flagged_addons": len(flagged)},
                )

            return ServiceResult.success(
                ReservationResponse.model_validate(reservation),
                message="Booking rescheduled",
                metadata={"addons_needing_time_adjustment": after["flagged_addons"]},
            )
        except Exception as e:
            return self._handle_exception(e, "reschedule reservation", reservation_id)

    def adjust_addon_time(
        self,
        actor: ActorContext,
        reservation_id: str,
        data: AddonTimeAdjustment,
    ) -> ServiceResult[ReservationResponse]:
        """Pick a new window for a timed facility add-on; the duration and price stay the same."""
        try:
            with self.transaction(self.isolation_level):
                existing = self.repository.get_by_id(reservation_id)
                ensure_studio_scope(actor, existing.studio_id)
                studio = self.studios.lock_for_booking(existing.studio_id)
                reservation = self._lock_reservation(reservation_id)

                if reservation.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
                    raise PolicyViolationError(
                        f"Cannot adjust add-ons of a {reservation.status.value} booking",
                        reservation_id=reservation.id,
                        error_code=AppErrorCode.INVALID_STATE,
                    )

                line = next((a for a in reservation.addons if a.id == data.reservation_addon_id), None)
                if line is None:
                    raise ResourceNotFoundError("Reservation add-on", data.reservation_addon_id)
                if not line.facility_id or line.start_time is None or line.end_time is None:
                    raise ValidationError("Add-on has no time window to adjust", field="reservation_addon_id")

                duration = DateTimeHelper.duration_minutes(line.start_time, line.end_time)
                new_end = self._end_time(data.start_time, duration, "start_time")
                self._ensure_within_hours(studio, reservation.reservation_date, data.start_time, new_end)

                conflicts = self.availability.find_facility_conflicts(
                    line.facility_id,
                    reservation.reservation_date,
                    data.start_time,
                    new_end,
                    exclude_reservation_id=reservation.id,
                )
                if conflicts:
                    raise BookingConflictError(
                        "Facility is already booked for this time",
                        conflicting_bookings=[c.model_dump() for c in conflicts],
                        facility_id=line.facility_id,
                    )

                before = {
                    "start_time": DateTimeHelper.format_time(line.start_time),
                    "end_time": DateTimeHelper.format_time(line.end_time),
                    "needs_time_adjustment": line.needs_time_adjustment,
                }
                line.start_time = data.start_time
                line.end_time = new_end
                line.needs_time_adjustment = False
                self.db.flush()

                self.events.record(
                    reservation.id,
                    ReservationEventType.ADDON_TIME_ADJUSTED,
                    occurred_at=DateTimeHelper.utc_now(),
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                    before=before,
                    after={
                        "reservation_addon_id": line.id,
                        "start_time": DateTimeHelper.format_time(line.start_time),
                        "end_time": DateTimeHelper.format_time(line.end_time),
                        "needs_time_adjustment": False,
                    },
                )

            return ServiceResult.success(
                ReservationResponse.model_validate(reservation),
                message="Add-on time updated",
            )
        except Exception as e:
            return self._handle_exception(e, "adjust add-on time", reservation_id)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete_reservation(self, actor: ActorContext, reservation_id: str) -> ServiceResult[bool]:
        """Remove a booking that never collected money; otherwise cancel it instead."""
        try:
            with self.transaction(self.isolation_level):
                reservation = self._lock_reservation(reservation_id)
                ensure_studio_scope(actor, reservation.studio_id)

                decision = reservation_state.can_delete(
                    reservation.status, self.payments.has_paid(reservation.id)
                )
                if not decision.allowed:
                    raise PolicyViolationError(decision.reason, reservation_id=reservation.id)

                if reservation.discount_id and reservation.status in (
                    ReservationStatus.PENDING,
                    ReservationStatus.CONFIRMED,
                ):
                    self.discounts.release_usage(reservation.discount_id)

                self.repository.delete(reservation)
                self._log_operation("Reservation deleted", reservation_id, {"actor_id": actor.user_id})

            return ServiceResult.success(True, message="Booking deleted")
        except Exception as e:
            return self._handle_exception(e, "delete reservation", reservation_id)

    # -------------------------------------------------------------------------
    # Transition plumbing
    # -------------------------------------------------------------------------

    def _transition(
        self,
        actor: ActorContext,
        reservation_id: str,
        operation: str,
        decide: Callable[[ReservationState, Reservation], TransitionResult],
        reason: Optional[str] = None,
        notify: Optional[NotificationKind] = None,
        on_applied: Optional[Callable[[Reservation], None]] = None,
        authorize: Optional[Callable[[ActorContext, Reservation], None]] = None,
    ) -> ServiceResult[ReservationResponse]:
        try:
            with self.transaction(self.isolation_level) as ctx:
                reservation = self._lock_reservation(reservation_id)
                (authorize or self._authorize_staff)(actor, reservation)

                before = ReservationState.of(reservation)
                result = decide(before, reservation)
                if not result.allowed:
                    raise PolicyViolationError(
                        result.reason,
                        reservation_id=reservation.id,
                        error_code=result.error_code,
                    )

                if result.is_noop:
                    self._logger.info(
                        f"{operation}: nothing to do",
                        extra={"reservation_id": reservation.id, "reason": result.reason},
                    )
                else:
                    self._apply_transition(reservation, before, result, actor, reason)
                    if on_applied is not None:
                        on_applied(reservation)
                    if notify is not None:
                        ctx.outbox.append({"reservation_id": reservation.id, "kind": notify})
                    self._log_operation(
                        result.reason,
                        reservation.id,
                        {"before": before.as_dict(), "after": result.new_state.as_dict()},
                    )

            return ServiceResult.success(
                ReservationResponse.model_validate(reservation),
                message=result.reason,
                metadata={"noop": result.is_noop},
            )
        except Exception as e:
            return self._handle_exception(e, operation, reservation_id)

    def _apply_transition(
        self,
        reservation: Reservation,
        before: Optional[ReservationState],
        result: TransitionResult,
        actor: ActorContext,
        reason: Optional[str] = None,
    ) -> None:
        """Reservation status first, then every effect in the order it was emitted."""
        reservation.status = result.new_state.status
        reservation.payment_status = result.new_state.payment_status
        self.db.flush()

        for effect in result.effects:
            if isinstance(effect, SetTimestamp):
                if getattr(reservation, effect.field_name) is None:
                    setattr(reservation, effect.field_name, DateTimeHelper.utc_now())
            elif isinstance(effect, CascadePaymentRecords):
                self.payments.cascade_status(reservation.id, effect.new_status, effect.from_statuses)
            elif isinstance(effect, IncrementDiscountUsage):
                if reservation.discount_id and not self.discounts.increment_usage(reservation.discount_id):
                    raise PolicyViolationError(
                        "Discount usage limit has been reached",
                        reservation_id=reservation.id,
                    )
            elif isinstance(effect, ReleaseDiscountUsage):
                if reservation.discount_id and not self.discounts.release_usage(reservation.discount_id):
                    self._logger.warning(
                        "Discount usage already at zero",
                        extra={"discount_id": reservation.discount_id},
                    )
            elif isinstance(effect, RecordEvent):
                self.events.record(
                    reservation.id,
                    effect.event_type,
                    occurred_at=DateTimeHelper.utc_now(),
                    actor_id=actor.user_id,
                    actor_role=actor.role.value,
                    before=before.as_dict() if before else None,
                    after=result.new_state.as_dict(),
                    reason=effect.reason or reason,
                )
        self.db.flush()

    def _lock_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.repository.lock_by_id(reservation_id)
        if reservation is None:
            raise ResourceNotFoundError("Reservation", reservation_id)
        return reservation

    @staticmethod
    def _authorize_staff(actor: ActorContext, reservation: Reservation) -> None:
        ensure_studio_scope(actor, reservation.studio_id)

    @staticmethod
    def _authorize_owner_or_staff(
        actor: ActorContext,
        reservation: Reservation,
        contact_phone: Optional[str] = None,
    ) -> None:
        if actor.is_staff:
            ensure_studio_scope(actor, reservation.studio_id)
            return
        customer = reservation.customer
        if actor.user_id is not None and customer is not None and customer.user_id == actor.user_id:
            return
        if (
            reservation.is_guest_booking
            and contact_phone
            and customer is not None
            and customer.phone
            and normalize_phone_number(customer.phone) == normalize_phone_number(contact_phone)
        ):
            return
        raise PermissionDenied("Only the booking owner or studio staff can do this", role=actor.role)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _build_draft(
        self,
        studio_id: str,
        package_id: str,
        addon_requests: Sequence[AddonRequest],
        discount_id: Optional[str],
        discount_code: Optional[str],
        payment_option: PaymentOption,
        requested_dp_amount: Optional[Decimal],
        now: Optional[datetime],
        strict: bool = False,
    ) -> Tuple[Package, BookingDraft, List[AddonSelection]]:
        """
        Resolve catalogue prices and run the calculator.

        With ``strict`` a discount or requested deposit that fails
        re-validation is an error instead of a notice.
        """
        package = self.packages.find_by_id(package_id)
        if package is None or package.studio_id != studio_id or not package.is_active:
            raise ValidationError("Package is not available for this studio", field="package_id")

        selections = self._resolve_addons(studio_id, package.id, addon_requests)

        terms: Optional[DiscountTerms] = None
        if discount_code and not discount_id:
            discount = self.discounts.find_by_code(discount_code, studio_id)
            if discount is None:
                raise ValidationError("Discount code not found", field="discount_code")
            discount_id = discount.id
        if discount_id:
            discount = self.discounts.find_by_id(discount_id)
            terms = DiscountTerms.model_validate(discount) if discount else None

        draft = recompute(
            BookingDraft(
                studio_id=studio_id,
                package_id=package.id,
                package_price=package.price,
                dp_percentage=package.dp_percentage,
                addons=selections,
                discount_id=discount_id,
                payment_option=payment_option,
                requested_dp_amount=requested_dp_amount,
            ),
            terms,
            now,
        )

        if strict:
            if discount_id and draft.discount_id is None:
                raise ValidationError(draft.notices[-1], field="discount_id")
            if (
                requested_dp_amount is not None
                and payment_option == PaymentOption.DEPOSIT
                and draft.requested_dp_amount is None
            ):
                validate_requested_deposit(draft.breakdown.total_amount, requested_dp_amount, draft.dp_percentage)

        return package, draft, selections

    def _resolve_addons(
        self,
        studio_id: str,
        package_id: str,
        requests: Sequence[AddonRequest],
    ) -> List[AddonSelection]:
        catalog = self.addon_catalog.find_many(r.addon_id for r in requests)
        package_terms = self.addon_catalog.package_terms(package_id)

        selections: List[AddonSelection] = []
        requested_ids = set()
        for request in requests:
            addon = catalog.get(request.addon_id)
            if addon is None or addon.studio_id != studio_id or not addon.is_active:
                raise ValidationError(f"Add-on {request.addon_id} is not available", field="addons")
            requested_ids.add(addon.id)
            selections.append(self._selection(addon, package_terms.get(addon.id), request))

        # Bundled add-ons come with the package even when not picked explicitly
        for addon_id, term in package_terms.items():
            if addon_id in requested_ids or not term.is_included:
                continue
            addon = term.addon
            if not addon.is_active or (addon.is_facility_bound and addon.is_hourly):
                continue
            selections.append(
                AddonSelection(
                    addon_id=addon.id,
                    name=addon.name,
                    unit_price=addon.price,
                    quantity=term.quantity or 1,
                    is_included=True,
                    is_facility=addon.is_facility_bound,
                    facility_id=addon.facility_id,
                )
            )
        return selections

    def _selection(self, addon: Addon, term: Optional[PackageAddon], request: AddonRequest) -> AddonSelection:
        start_time = end_time = None
        quantity = request.quantity

        if addon.is_hourly:
            hours = request.duration_hours
            if hours is None and request.start_time and request.end_time:
                minutes = DateTimeHelper.duration_minutes(request.start_time, request.end_time)
                if minutes % 60:
                    raise ValidationError("Hourly add-ons are booked in whole hours", field="addons")
                hours = minutes // 60
            hours = hours or request.quantity
            quantity = hours
            if addon.is_facility_bound:
                if request.start_time is None:
                    raise ValidationError(f"Add-on {addon.name} needs a start time", field="addons")
                start_time = request.start_time
                end_time = self._end_time(start_time, hours * 60, "addons")
        elif addon.max_quantity and quantity > addon.max_quantity:
            raise ValidationError(
                f"Add-on {addon.name} allows at most {addon.max_quantity}",
                field="addons",
            )

        return AddonSelection(
            addon_id=addon.id,
            name=addon.name,
            unit_price=addon.hourly_rate if addon.is_hourly and addon.hourly_rate is not None else addon.price,
            quantity=quantity,
            is_included=bool(term and term.is_included),
            package_price=term.final_price if term else None,
            discount_percentage=term.discount_percentage if term else None,
            is_facility=addon.is_facility_bound,
            facility_id=addon.facility_id,
            is_hourly=addon.is_hourly,
            start_time=start_time,
            end_time=end_time,
        )

    def _initial_payment_status(
        self,
        data: ReservationCreate,
        total_amount: Decimal,
        dp_percentage: Optional[int],
    ) -> PaymentStatus:
        if data.recorded_payment is None:
            return PaymentStatus.PENDING
        amount = data.recorded_payment.amount
        if amount > total_amount:
            raise ValidationError("Recorded payment exceeds the booking total", field="recorded_payment")
        if amount >= total_amount:
            return PaymentStatus.PAID
        minimum = calculate_deposit(total_amount, PaymentOption.DEPOSIT, dp_percentage)
        if amount < minimum:
            raise ValidationError(
                f"Recorded payment must cover the minimum deposit of {minimum:,.0f}",
                field="recorded_payment",
            )
        return PaymentStatus.PARTIAL

    def _record_gateway_payment(self, reservation: Reservation, event: PaymentWebhookEvent) -> None:
        """
        Create or update the payment row an event refers to.

        An event without an amount pays the outstanding balance (``paid``)
        or the deposit (``partial``). An event without a payment reference
        cannot be told apart from a repeated delivery, so its amount is only
        recorded while the booking is still pending.
        """
        row_status = {
            PaymentStatus.PAID: PaymentStatus.PAID,
            PaymentStatus.PARTIAL: PaymentStatus.PAID,
            PaymentStatus.FAILED: PaymentStatus.FAILED,
            PaymentStatus.CANCELLED: PaymentStatus.FAILED,
            PaymentStatus.PENDING: PaymentStatus.PENDING,
        }.get(event.payment_status)
        if row_status is None:
            return

        payment = None
        if event.payment_id:
            payment = self.payments.find_by_id(event.payment_id)
        if payment is None and event.external_payment_id:
            payment = self.payments.find_by_external_id(event.external_payment_id)
        if payment is not None and payment.reservation_id != reservation.id:
            raise ValidationError("Payment does not belong to this reservation", field="payment_id")

        if payment is not None:
            if payment.status in (PaymentStatus.PENDING, PaymentStatus.FAILED) and payment.status != row_status:
                payment.status = row_status
                if row_status == PaymentStatus.PAID:
                    payment.paid_at = event.paid_at or DateTimeHelper.utc_now()
                self.db.flush()
            return

        if row_status != PaymentStatus.PAID:
            return
        already_paid = self.payments.total_paid(reservation.id)
        if event.amount is not None:
            referenced = bool(event.payment_id or event.external_payment_id)
            if not referenced and reservation.status != ReservationStatus.PENDING:
                return
            amount = event.amount
        elif event.payment_status == PaymentStatus.PARTIAL:
            amount = reservation.dp_amount - already_paid
        else:
            amount = reservation.total_amount - already_paid
        if amount <= 0:
            return

        if event.payment_type is not None:
            payment_type = event.payment_type
        elif already_paid > 0:
            payment_type = PaymentType.REMAINING
        elif amount >= reservation.total_amount:
            payment_type = PaymentType.FULL
        else:
            payment_type = PaymentType.DP
        fees = calculate_payment_fee(amount)
        self.payments.create(
            Payment(
                reservation_id=reservation.id,
                amount=fees.base_amount,
                payment_type=payment_type,
                status=PaymentStatus.PAID,
                external_payment_id=event.external_payment_id,
                gateway_fee=fees.fee_amount,
                net_amount=fees.net_amount,
                paid_at=event.paid_at or DateTimeHelper.utc_now(),
            )
        )

    def _ensure_slot_free(
        self,
        studio_id: str,
        reservation_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> None:
        conflicts = self.availability.find_slot_conflicts(
            studio_id, reservation_date, start, end, exclude_reservation_id
        )
        if conflicts:
            raise BookingConflictError(
                "Time slot is already booked",
                conflicting_bookings=[c.model_dump() for c in conflicts],
            )
        blocks = [
            TimeWindow.from_times(b.start_time, b.end_time)
            for b in self.blocked_slots.find_for_date(studio_id, reservation_date)
        ]
        if find_conflicts(TimeWindow.from_times(start, end), blocks):
            raise BookingConflictError("Time slot is blocked by the studio")

    def _ensure_facilities_free(self, selections: Sequence[AddonSelection], reservation_date: date) -> None:
        """Each timed facility add-on must be free, also against the others in the same booking."""
        taken: Dict[str, List[TimeWindow]] = {}
        for selection in selections:
            if not selection.facility_id or selection.start_time is None:
                continue
            conflicts = self.availability.find_facility_conflicts(
                selection.facility_id, reservation_date, selection.start_time, selection.end_time
            )
            window = TimeWindow.from_times(selection.start_time, selection.end_time)
            if conflicts or find_conflicts(window, taken.get(selection.facility_id, [])):
                raise BookingConflictError(
                    f"{selection.name or 'Facility'} is already booked for {window.label}",
                    conflicting_bookings=[c.model_dump() for c in conflicts],
                    facility_id=selection.facility_id,
                )
            taken.setdefault(selection.facility_id, []).append(window)

    @staticmethod
    def _ensure_within_hours(studio, reservation_date: date, start: time, end: time) -> None:
        hours = resolve_day_hours(
            studio.operating_hours, reservation_date, settings.booking.DEFAULT_OPERATING_HOURS
        )
        if not hours.is_open:
            raise ValidationError("Studio is closed on this day", field="reservation_date")
        window = TimeWindow.from_times(start, end)
        if window.start < hours.open or window.end > hours.close:
            raise ValidationError("Booking must be within the studio's operating hours", field="start_time")

    @staticmethod
    def _end_time(start: time, minutes: int, field: str) -> time:
        try:
            return DateTimeHelper.add_minutes(start, minutes)
        except ValueError as e:
            raise ValidationError("Booking must end on the same day", field=field) from e

    @staticmethod
    def _append_note(notes: Optional[str], line: str) -> str:
        return f"{notes}\n{line}" if notes else line

    @staticmethod
    def _schedule_snapshot(reservation: Reservation) -> Dict[str, object]:
        return {
            "reservation_date": reservation.reservation_date.isoformat(),
            "start_time": DateTimeHelper.format_time(reservation.start_time),
            "end_time": DateTimeHelper.format_time(reservation.end_time),
            "total_duration": reservation.total_duration,
        }

    def _publish_notifications(self, ctx: TransactionContext) -> None:
        """After-commit hook: turn queued notices into payloads for eligible reservations."""
        for item in ctx.outbox:
            reservation = self.repository.find_by_id(item["reservation_id"])
            if reservation is None:
                continue
            kind = item["kind"]
            if not self.notifications.is_notification_eligible(reservation, kind):
                continue
            payload = self.notifications.build_payload(reservation, kind)
            self.published.append(payload)
            if self.notifier is not None:
                self.notifier(payload)


__all__ = ["ReservationService"]
