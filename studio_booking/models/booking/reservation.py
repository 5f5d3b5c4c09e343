"""
Reservation models.

This module defines the central booking entity and the add-on lines it
owns. Financial fields are written once by the quote calculator and are
never touched by rescheduling.
"""

from datetime import date as Date, datetime, time as Time
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time as SQLTime,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import Money, TimestampModel, db_enum
from studio_booking.models.base.enums import PaymentStatus, ReservationStatus

if TYPE_CHECKING:
    from studio_booking.models.booking.reservation_event import ReservationEvent
    from studio_booking.models.catalog.addon import Addon
    from studio_booking.models.catalog.package import Package
    from studio_booking.models.customer.customer import Customer
    from studio_booking.models.discount.discount import Discount
    from studio_booking.models.payment.payment import Payment
    from studio_booking.models.studio.studio import Studio

__all__ = ["Reservation", "ReservationAddon"]


class Reservation(TimestampModel):
    """
    Studio reservation.

    Attributes:
        booking_code: Customer-facing code, ``STD`` + ``YYYYMMDD`` + daily sequence
        reservation_date: Session date
        start_time / end_time: Primary window, half-open
        total_duration: Session length in minutes
        package_price .. remaining_amount: Price breakdown captured at booking time
        status / payment_status: Lifecycle state, legal pairs enforced by
            ``ReservationState``
        is_guest_booking: Booked without a registered account
        discount_id: Applied discount, if any
        user_id: Staff member who created a manual booking
        notes: Customer visible notes, receives reschedule lines
        internal_notes: Staff only notes
    """

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_studio_date", "studio_id", "reservation_date"),
        CheckConstraint("total_amount >= 0", name="ck_reservations_total_non_negative"),
        CheckConstraint("remaining_amount >= 0", name="ck_reservations_remaining_non_negative"),
    )

    booking_code: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique human-readable booking code (e.g., STD20250115001)",
    )

    # Foreign Keys
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="RESTRICT"),
        nullable=False,
    )
    package_id: Mapped[str] = mapped_column(
        ForeignKey("packages.id", ondelete="RESTRICT"),
        nullable=False,
    )
    customer_id: Mapped[str] = mapped_column(
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    discount_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("discounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Staff member for manual bookings",
    )
    is_guest_booking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Scheduling
    reservation_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    start_time: Mapped[Time] = mapped_column(SQLTime, nullable=False)
    end_time: Mapped[Time] = mapped_column(SQLTime, nullable=False)
    total_duration: Mapped[int] = mapped_column(Integer, nullable=False)

    # Pricing
    package_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    facility_addon_total: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    other_addon_total: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    discount_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    dp_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Status
    status: Mapped[ReservationStatus] = mapped_column(
        db_enum(ReservationStatus),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        db_enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # Notes
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Lifecycle timestamps
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    studio: Mapped["Studio"] = relationship()
    package: Mapped["Package"] = relationship()
    customer: Mapped["Customer"] = relationship()
    discount: Mapped[Optional["Discount"]] = relationship()
    addons: Mapped[List["ReservationAddon"]] = relationship(
        back_populates="reservation",
        cascade="all, delete-orphan",
    )
    payments: Mapped[List["Payment"]] = relationship(
        back_populates="reservation",
        cascade="all, delete-orphan",
    )
    events: Mapped[List["ReservationEvent"]] = relationship(
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationEvent.sequence",
    )

    @property
    def addon_total(self) -> Decimal:
        return (self.facility_addon_total or Decimal("0")) + (self.other_addon_total or Decimal("0"))

    @property
    def time_range(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    def __repr__(self) -> str:
        return f"<Reservation(code={self.booking_code}, status={self.status})>"


class ReservationAddon(TimestampModel):
    """
    Add-on line of a reservation.

    Only facility-bound hourly add-ons carry their own window
    (start_time, end_time, duration_hours).
    """

    __tablename__ = "reservation_addons"

    reservation_id: Mapped[str] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addon_id: Mapped[str] = mapped_column(
        ForeignKey("addons.id", ondelete="RESTRICT"),
        nullable=False,
    )
    facility_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("facilities.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Copied from the add-on so conflict queries need no join",
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    is_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    start_time: Mapped[Optional[Time]] = mapped_column(SQLTime, nullable=True)
    end_time: Mapped[Optional[Time]] = mapped_column(SQLTime, nullable=True)
    duration_hours: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    needs_time_adjustment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    reservation: Mapped["Reservation"] = relationship(back_populates="addons")
    addon: Mapped["Addon"] = relationship()
