from studio_booking.models.base.base_model import Base, BaseModel, Money, TimestampModel, db_enum
from studio_booking.models.base.enums import (
    ActorRole,
    AddonPricingType,
    AddonType,
    DiscountScope,
    DiscountType,
    PaymentOption,
    PaymentStatus,
    PaymentType,
    ReservationEventType,
    ReservationStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "Money",
    "db_enum",
    "ActorRole",
    "AddonPricingType",
    "AddonType",
    "DiscountScope",
    "DiscountType",
    "PaymentOption",
    "PaymentStatus",
    "PaymentType",
    "ReservationEventType",
    "ReservationStatus",
]
