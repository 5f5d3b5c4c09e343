"""
Append-only audit log of reservation changes.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import BaseModel, db_enum
from studio_booking.models.base.enums import ReservationEventType

if TYPE_CHECKING:
    from studio_booking.models.booking.reservation import Reservation

__all__ = ["ReservationEvent"]


class ReservationEvent(BaseModel):
    """One structured entry: what changed, who changed it, and why."""

    __tablename__ = "reservation_events"

    reservation_id: Mapped[str] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type: Mapped[ReservationEventType] = mapped_column(
        db_enum(ReservationEventType),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, comment="Position in the reservation log")
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    actor_role: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    before: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    after: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    reservation: Mapped["Reservation"] = relationship(back_populates="events")
