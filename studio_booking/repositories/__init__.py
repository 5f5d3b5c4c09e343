"""
Data access layer.
"""

from studio_booking.repositories.base import AuditContext, BaseRepository
from studio_booking.repositories.booking import ReservationEventRepository, ReservationRepository
from studio_booking.repositories.catalog import (
    AddonRepository,
    BlockedSlotRepository,
    FacilityRepository,
    PackageRepository,
    StudioRepository,
)
from studio_booking.repositories.customer import CustomerRepository
from studio_booking.repositories.discount import DiscountRepository
from studio_booking.repositories.payment import PaymentRepository

__all__ = [
    "AuditContext",
    "BaseRepository",
    "ReservationRepository",
    "ReservationEventRepository",
    "StudioRepository",
    "FacilityRepository",
    "BlockedSlotRepository",
    "PackageRepository",
    "AddonRepository",
    "CustomerRepository",
    "DiscountRepository",
    "PaymentRepository",
]
