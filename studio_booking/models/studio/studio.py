"""
Studio, facility and blocked-slot models.

A studio owns its operating hours; facilities are shared physical rooms
that facility-bound add-ons occupy for their own time window.
"""

from datetime import date as Date, time as Time
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Date as SQLDate, ForeignKey, Index, Integer, String, Text, Time as SQLTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import TimestampModel

if TYPE_CHECKING:
    from studio_booking.models.catalog.addon import Addon

__all__ = ["Studio", "Facility", "BlockedSlot"]


class Studio(TimestampModel):
    """
    Photo studio.

    Attributes:
        name: Display name
        operating_hours: ``{weekday: {open, close, is_open}}`` keyed by
            lowercase English weekday; missing days fall back to defaults
        is_active: Whether the studio accepts bookings
    """

    __tablename__ = "studios"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    operating_hours: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Weekly opening hours",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    facilities: Mapped[List["Facility"]] = relationship(
        back_populates="studio",
        cascade="all, delete-orphan",
    )


class Facility(TimestampModel):
    """Physical resource (makeup room, changing room) shared across bookings."""

    __tablename__ = "facilities"

    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    studio: Mapped["Studio"] = relationship(back_populates="facilities")
    addons: Mapped[List["Addon"]] = relationship(back_populates="facility")


class BlockedSlot(TimestampModel):
    """Window closed by staff (maintenance, private event)."""

    __tablename__ = "blocked_slots"
    __table_args__ = (
        Index("ix_blocked_slots_studio_date", "studio_id", "slot_date"),
    )

    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
    )
    facility_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("facilities.id", ondelete="CASCADE"),
        nullable=True,
        comment="Null blocks the whole studio",
    )
    slot_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    start_time: Mapped[Time] = mapped_column(SQLTime, nullable=False)
    end_time: Mapped[Time] = mapped_column(SQLTime, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
