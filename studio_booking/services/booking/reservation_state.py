"""
Reservation state machine.

``ReservationState`` pairs a reservation status with its payment status and
refuses combinations that cannot occur. Transitions are pure: they return a
``TransitionResult`` carrying the new state and the side effects the
service must apply, in order, inside the same transaction.

Repeating a transition that has already been applied is allowed and
yields no effects, so retried requests are harmless.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from studio_booking.core.exceptions import ErrorCode, PolicyViolationError
from studio_booking.models.base.enums import (
    PaymentStatus,
    ReservationEventType,
    ReservationStatus,
)
from studio_booking.schemas.booking.policy import PolicyDecision

LEGAL_COMBINATIONS = {
    ReservationStatus.PENDING: frozenset(
        {PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.PAID, PaymentStatus.FAILED}
    ),
    ReservationStatus.CONFIRMED: frozenset({PaymentStatus.PARTIAL, PaymentStatus.PAID}),
    ReservationStatus.IN_PROGRESS: frozenset({PaymentStatus.PAID}),
    ReservationStatus.COMPLETED: frozenset({PaymentStatus.PAID}),
    ReservationStatus.NO_SHOW: frozenset({PaymentStatus.PARTIAL, PaymentStatus.PAID}),
    ReservationStatus.CANCELLED: frozenset(
        {PaymentStatus.CANCELLED, PaymentStatus.PARTIAL, PaymentStatus.PAID, PaymentStatus.REFUNDED}
    ),
}

INITIAL_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.PAID)


@dataclass(frozen=True)
class ReservationState:
    status: ReservationStatus
    payment_status: PaymentStatus

    def __post_init__(self):
        allowed = LEGAL_COMBINATIONS.get(self.status, frozenset())
        if self.payment_status not in allowed:
            raise PolicyViolationError(
                f"Illegal reservation state: {self.status.value} with payment {self.payment_status.value}",
                error_code=ErrorCode.INVALID_STATE,
            )

    @classmethod
    def of(cls, reservation) -> "ReservationState":
        return cls(reservation.status, reservation.payment_status)

    def with_status(self, status: ReservationStatus) -> "ReservationState":
        return ReservationState(status, self.payment_status)

    def with_payment(self, payment_status: PaymentStatus) -> "ReservationState":
        return ReservationState(self.status, payment_status)

    def as_dict(self):
        return {"status": self.status.value, "payment_status": self.payment_status.value}


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IncrementDiscountUsage:
    pass


@dataclass(frozen=True)
class ReleaseDiscountUsage:
    pass


@dataclass(frozen=True)
class CascadePaymentRecords:
    new_status: PaymentStatus
    from_statuses: Optional[Tuple[PaymentStatus, ...]] = None


@dataclass(frozen=True)
class SetTimestamp:
    """Set a lifecycle timestamp unless it is already set."""

    field_name: str


@dataclass(frozen=True)
class RecordEvent:
    event_type: ReservationEventType
    reason: Optional[str] = None


@dataclass(frozen=True)
class TransitionResult:
    allowed: bool
    reason: str
    new_state: Optional[ReservationState] = None
    effects: Tuple[object, ...] = field(default_factory=tuple)
    error_code: ErrorCode = ErrorCode.POLICY_VIOLATION

    @property
    def is_noop(self) -> bool:
        return self.allowed and not self.effects

    @classmethod
    def ok(cls, new_state: ReservationState, reason: str, *effects) -> "TransitionResult":
        return cls(allowed=True, reason=reason, new_state=new_state, effects=tuple(effects))

    @classmethod
    def noop(cls, state: ReservationState, reason: str) -> "TransitionResult":
        return cls(allowed=True, reason=reason, new_state=state)

    @classmethod
    def deny(cls, reason: str, state: Optional[ReservationState] = None) -> "TransitionResult":
        return cls(allowed=False, reason=reason, new_state=state, error_code=ErrorCode.INVALID_STATE)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def initial_state(
    recorded_payment: Optional[PaymentStatus] = None,
    has_discount: bool = False,
) -> TransitionResult:
    """New bookings start pending; staff may record money already collected."""
    payment_status = recorded_payment or PaymentStatus.PENDING
    if payment_status not in INITIAL_PAYMENT_STATUSES:
        return TransitionResult.deny(f"A new booking cannot start with payment {payment_status.value}")

    effects = []
    if has_discount:
        effects.append(IncrementDiscountUsage())
    effects.append(RecordEvent(ReservationEventType.CREATED))
    return TransitionResult.ok(
        ReservationState(ReservationStatus.PENDING, payment_status),
        "Booking created",
        *effects,
    )


def apply_payment_event(
    state: ReservationState,
    event_status: PaymentStatus,
    settles_in_full: bool = False,
) -> TransitionResult:
    """
    Fold a gateway payment status into the reservation.

    A successful payment on a pending booking confirms it; the payment
    status becomes ``paid`` only once the total is covered.
    """
    if event_status in (PaymentStatus.PAID, PaymentStatus.PARTIAL):
        target = PaymentStatus.PAID if event_status == PaymentStatus.PAID and settles_in_full else PaymentStatus.PARTIAL

        if state.status == ReservationStatus.CANCELLED:
            return TransitionResult.deny("Booking has been cancelled", state)

        if state.status == ReservationStatus.PENDING:
            return TransitionResult.ok(
                ReservationState(ReservationStatus.CONFIRMED, target),
                "Payment received, booking confirmed",
                SetTimestamp("confirmed_at"),
                RecordEvent(ReservationEventType.STATUS_CHANGED, "Payment received"),
            )

        if state.payment_status == PaymentStatus.PARTIAL and target == PaymentStatus.PAID:
            return TransitionResult.ok(
                state.with_payment(PaymentStatus.PAID),
                "Booking paid in full",
                RecordEvent(ReservationEventType.PAYMENT_CHANGED, "Remaining balance received"),
            )
        return TransitionResult.noop(state, "Payment already applied")

    if event_status in (PaymentStatus.FAILED, PaymentStatus.CANCELLED):
        if state.status != ReservationStatus.PENDING:
            return TransitionResult.deny(
                f"Payment failure does not apply to a {state.status.value} booking", state
            )
        if state.payment_status == PaymentStatus.FAILED:
            return TransitionResult.noop(state, "Payment failure already recorded")
        if state.payment_status != PaymentStatus.PENDING:
            return TransitionResult.deny("Booking already has a successful payment", state)
        return TransitionResult.ok(
            state.with_payment(PaymentStatus.FAILED),
            "Payment failed",
            CascadePaymentRecords(PaymentStatus.FAILED, (PaymentStatus.PENDING,)),
            RecordEvent(ReservationEventType.PAYMENT_CHANGED, "Payment failed"),
        )

    if event_status == PaymentStatus.REFUNDED:
        if state.status != ReservationStatus.CANCELLED:
            return TransitionResult.deny("Only cancelled bookings can be refunded", state)
        if state.payment_status == PaymentStatus.REFUNDED:
            return TransitionResult.noop(state, "Refund already recorded")
        return TransitionResult.ok(
            state.with_payment(PaymentStatus.REFUNDED),
            "Payment refunded",
            CascadePaymentRecords(PaymentStatus.REFUNDED, (PaymentStatus.PAID,)),
            RecordEvent(ReservationEventType.PAYMENT_CHANGED, "Payment refunded"),
        )

    return TransitionResult.noop(state, "Payment still pending")


def confirm(state: ReservationState) -> TransitionResult:
    if state.status == ReservationStatus.CONFIRMED:
        return TransitionResult.noop(state, "Booking already confirmed")
    if state.status != ReservationStatus.PENDING:
        return TransitionResult.deny(f"Cannot confirm a {state.status.value} booking", state)
    if state.payment_status not in (PaymentStatus.PARTIAL, PaymentStatus.PAID):
        return TransitionResult.deny("A deposit must be paid before confirming", state)
    return TransitionResult.ok(
        state.with_status(ReservationStatus.CONFIRMED),
        "Booking confirmed",
        SetTimestamp("confirmed_at"),
        RecordEvent(ReservationEventType.STATUS_CHANGED),
    )


def start(state: ReservationState) -> TransitionResult:
    if state.status == ReservationStatus.IN_PROGRESS:
        return TransitionResult.noop(state, "Session already in progress")
    if state.status != ReservationStatus.CONFIRMED:
        return TransitionResult.deny(f"Cannot start a {state.status.value} booking", state)
    if state.payment_status != PaymentStatus.PAID:
        return TransitionResult.deny("Remaining balance must be paid before the session starts", state)
    return TransitionResult.ok(
        state.with_status(ReservationStatus.IN_PROGRESS),
        "Session started",
        RecordEvent(ReservationEventType.STATUS_CHANGED),
    )


def complete(state: ReservationState) -> TransitionResult:
    if state.status == ReservationStatus.COMPLETED:
        return TransitionResult.noop(state, "Booking already completed")
    if state.status != ReservationStatus.IN_PROGRESS:
        return TransitionResult.deny(f"Cannot complete a {state.status.value} booking", state)
    return TransitionResult.ok(
        state.with_status(ReservationStatus.COMPLETED),
        "Booking completed",
        SetTimestamp("completed_at"),
        RecordEvent(ReservationEventType.STATUS_CHANGED),
    )


def mark_no_show(state: ReservationState) -> TransitionResult:
    if state.status == ReservationStatus.NO_SHOW:
        return TransitionResult.noop(state, "Booking already marked as no-show")
    if state.status != ReservationStatus.CONFIRMED:
        return TransitionResult.deny(f"Cannot mark a {state.status.value} booking as no-show", state)
    return TransitionResult.ok(
        state.with_status(ReservationStatus.NO_SHOW),
        "Customer did not show up",
        RecordEvent(ReservationEventType.STATUS_CHANGED),
    )


def cancel(
    state: ReservationState,
    reason: Optional[str] = None,
    release_on_confirmed: bool = False,
) -> TransitionResult:
    """
    Cancel a pending or confirmed booking.

    Pending: payments are voided and the discount slot is given back.
    Confirmed: the payment status is kept (deposit forfeited) and the
    discount stays consumed unless ``release_on_confirmed``.
    """
    if state.status == ReservationStatus.CANCELLED:
        return TransitionResult.noop(state, "Booking already cancelled")

    if state.status == ReservationStatus.PENDING:
        return TransitionResult.ok(
            ReservationState(ReservationStatus.CANCELLED, PaymentStatus.CANCELLED),
            "Booking cancelled",
            SetTimestamp("cancelled_at"),
            CascadePaymentRecords(PaymentStatus.CANCELLED),
            ReleaseDiscountUsage(),
            RecordEvent(ReservationEventType.CANCELLED, reason),
        )

    if state.status == ReservationStatus.CONFIRMED:
        effects = [SetTimestamp("cancelled_at")]
        if release_on_confirmed:
            effects.append(ReleaseDiscountUsage())
        effects.append(RecordEvent(ReservationEventType.CANCELLED, reason))
        return TransitionResult.ok(
            state.with_status(ReservationStatus.CANCELLED),
            "Booking cancelled, deposit forfeited",
            *effects,
        )

    return TransitionResult.deny(f"Cannot cancel a {state.status.value} booking", state)


def complete_payment(state: ReservationState) -> TransitionResult:
    """Settle the remaining balance of a partially paid booking."""
    if state.status == ReservationStatus.CANCELLED:
        return TransitionResult.deny("Booking has been cancelled", state)
    if state.payment_status == PaymentStatus.PAID:
        return TransitionResult.noop(state, "Booking already paid in full")
    if state.payment_status != PaymentStatus.PARTIAL:
        return TransitionResult.deny("Deposit has not been paid yet", state)
    return TransitionResult.ok(
        state.with_payment(PaymentStatus.PAID),
        "Remaining balance settled",
        RecordEvent(ReservationEventType.PAYMENT_CHANGED, "Remaining balance settled"),
    )


def can_delete(status: ReservationStatus, has_paid_payment: bool) -> PolicyDecision:
    if status in (ReservationStatus.IN_PROGRESS, ReservationStatus.COMPLETED):
        return PolicyDecision(allowed=False, reason=f"Cannot delete a {status.value} booking")
    if has_paid_payment:
        return PolicyDecision(
            allowed=False,
            reason="Cannot delete a booking with a completed payment; cancel it instead",
        )
    return PolicyDecision(allowed=True, reason="Booking can be deleted")


__all__ = [
    "ReservationState",
    "TransitionResult",
    "IncrementDiscountUsage",
    "ReleaseDiscountUsage",
    "CascadePaymentRecords",
    "SetTimestamp",
    "RecordEvent",
    "initial_state",
    "apply_payment_event",
    "confirm",
    "start",
    "complete",
    "mark_no_show",
    "cancel",
    "complete_payment",
    "can_delete",
]
