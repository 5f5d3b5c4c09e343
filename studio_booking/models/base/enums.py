"""
Database enums for the booking engine.

String valued so they serialize unchanged through pydantic schemas and
the HTTP layer.
"""

import enum


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    """Payment status of a reservation or of a single payment record."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentOption(str, enum.Enum):
    """How the customer chose to pay at booking time."""
    DEPOSIT = "deposit"
    FULL = "full"


class PaymentType(str, enum.Enum):
    """What a payment record settles."""
    DP = "dp"
    REMAINING = "remaining"
    FULL = "full"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class DiscountScope(str, enum.Enum):
    """Which part of the subtotal a discount is computed from."""
    ALL = "all"
    PACKAGES = "packages"
    ADDONS = "addons"


class AddonType(str, enum.Enum):
    PHOTOGRAPHY = "photography"
    SERVICE = "service"
    PRINTING = "printing"
    STORAGE = "storage"
    MAKEUP = "makeup"
    STYLING = "styling"
    WARDROBE = "wardrobe"
    TIME = "time"
    EQUIPMENT = "equipment"
    DECORATION = "decoration"
    VIDEO = "video"


class AddonPricingType(str, enum.Enum):
    FIXED = "fixed"
    HOURLY = "hourly"


class ReservationEventType(str, enum.Enum):
    """Entries of the per-reservation audit log."""
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    PAYMENT_CHANGED = "payment_changed"
    RESCHEDULED = "rescheduled"
    ADDON_TIME_ADJUSTED = "addon_time_adjusted"
    CANCELLED = "cancelled"


class ActorRole(str, enum.Enum):
    """Resolved caller role supplied by the identity layer."""
    ADMIN = "admin"
    CS = "cs"
    ANONYMOUS = "anonymous"
