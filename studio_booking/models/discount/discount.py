"""
Discount codes.

``used_count`` is only ever changed through atomic SQL updates issued by
the discount repository.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from studio_booking.models.base.base_model import Money, TimestampModel, db_enum
from studio_booking.models.base.enums import DiscountScope, DiscountType

__all__ = ["Discount"]


class Discount(TimestampModel):
    """Studio discount code with validity window and usage cap."""

    __tablename__ = "discounts"
    __table_args__ = (
        UniqueConstraint("studio_id", "code", name="uq_discounts_studio_code"),
        CheckConstraint("used_count >= 0", name="ck_discounts_used_count_non_negative"),
    )

    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[DiscountType] = mapped_column(db_enum(DiscountType), nullable=False)
    value: Mapped[Decimal] = mapped_column(Money, nullable=False)
    minimum_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    maximum_discount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    valid_from: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    valid_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    applies_to: Mapped[DiscountScope] = mapped_column(
        db_enum(DiscountScope),
        nullable=False,
        default=DiscountScope.ALL,
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
