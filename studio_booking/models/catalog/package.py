"""
Photo packages sold by a studio.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import Money, TimestampModel

if TYPE_CHECKING:
    from studio_booking.models.catalog.addon import PackageAddon

__all__ = ["Package"]


class Package(TimestampModel):
    """
    Bookable package.

    Attributes:
        price: Package price in whole currency units
        duration_minutes: Length of the primary session
        dp_percentage: Minimum deposit percentage; null means the configured default
    """

    __tablename__ = "packages"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_packages_price_non_negative"),
        CheckConstraint("duration_minutes > 0", name="ck_packages_duration_positive"),
    )

    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    dp_percentage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    package_addons: Mapped[List["PackageAddon"]] = relationship(
        back_populates="package",
        cascade="all, delete-orphan",
    )
