"""
Customer contact record.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from studio_booking.models.base.base_model import TimestampModel

__all__ = ["Customer"]


class Customer(TimestampModel):
    """Booking customer; guests have no linked user account."""

    __tablename__ = "customers"

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Registered account, null for guests",
    )
