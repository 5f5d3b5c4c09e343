"""
SQLAlchemy models for the booking engine.

Importing this package registers every table on ``Base.metadata``.
"""

from studio_booking.models.base import Base, BaseModel, TimestampModel
from studio_booking.models.booking import Reservation, ReservationAddon, ReservationEvent
from studio_booking.models.catalog import Addon, Package, PackageAddon
from studio_booking.models.customer import Customer
from studio_booking.models.discount import Discount
from studio_booking.models.payment import Payment
from studio_booking.models.studio import BlockedSlot, Facility, Studio

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "Studio",
    "Facility",
    "BlockedSlot",
    "Package",
    "Addon",
    "PackageAddon",
    "Customer",
    "Reservation",
    "ReservationAddon",
    "ReservationEvent",
    "Payment",
    "Discount",
]
