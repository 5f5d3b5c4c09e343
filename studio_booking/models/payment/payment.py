"""
Payment records attached to a reservation.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import Money, TimestampModel, db_enum
from studio_booking.models.base.enums import PaymentStatus, PaymentType

if TYPE_CHECKING:
    from studio_booking.models.booking.reservation import Reservation

__all__ = ["Payment"]


class Payment(TimestampModel):
    """
    Single payment attempt or settlement.

    Attributes:
        payment_type: dp, remaining or full
        status: Gateway outcome mapped onto PaymentStatus
        external_payment_id: Gateway reference
        gateway_fee / net_amount: Fee split computed by the fee calculator
    """

    __tablename__ = "payments"

    reservation_id: Mapped[str] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(db_enum(PaymentType), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        db_enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    external_payment_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    gateway_fee: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    net_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    reservation: Mapped["Reservation"] = relationship(back_populates="payments")
