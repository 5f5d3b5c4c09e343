from studio_booking.schemas.booking.availability import ConflictingBooking, SlotCheck, TimeSlot
from studio_booking.schemas.booking.policy import CancellationInfo, DeadlineInfo, PolicyDecision
from studio_booking.schemas.booking.quote import (
    AddonLine,
    AddonRequest,
    AddonSelection,
    BookingDraft,
    PriceBreakdown,
    QuoteRequest,
)
from studio_booking.schemas.booking.reservation import (
    AddonTimeAdjustment,
    CancelRequest,
    CustomerInfo,
    RecordedPayment,
    ReservationAddonResponse,
    ReservationCreate,
    ReservationEventResponse,
    ReservationResponse,
    ReservationStats,
    RescheduleRequest,
    StatusActionRequest,
)

__all__ = [
    "ConflictingBooking",
    "SlotCheck",
    "TimeSlot",
    "CancellationInfo",
    "DeadlineInfo",
    "PolicyDecision",
    "AddonLine",
    "AddonRequest",
    "AddonSelection",
    "BookingDraft",
    "PriceBreakdown",
    "QuoteRequest",
    "AddonTimeAdjustment",
    "CustomerInfo",
    "RecordedPayment",
    "ReservationAddonResponse",
    "ReservationCreate",
    "ReservationEventResponse",
    "ReservationResponse",
    "ReservationStats",
    "RescheduleRequest",
    "StatusActionRequest",
    "CancelRequest",
]
