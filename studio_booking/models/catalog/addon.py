"""
Add-on catalogue and package-specific add-on pricing.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_booking.models.base.base_model import Money, TimestampModel, db_enum
from studio_booking.models.base.enums import AddonPricingType, AddonType

if TYPE_CHECKING:
    from studio_booking.models.catalog.package import Package
    from studio_booking.models.studio.studio import Facility

__all__ = ["Addon", "PackageAddon"]


class Addon(TimestampModel):
    """
    Optional extra sold with a package.

    Hourly add-ons bound to a facility occupy that facility for their own
    time window, independent of the reservation's primary window.
    """

    __tablename__ = "addons"

    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    facility_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("facilities.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[AddonType] = mapped_column(db_enum(AddonType), nullable=False)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    pricing_type: Mapped[AddonPricingType] = mapped_column(
        db_enum(AddonPricingType),
        nullable=False,
        default=AddonPricingType.FIXED,
    )
    hourly_rate: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    max_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    facility: Mapped[Optional["Facility"]] = relationship(back_populates="addons")

    @property
    def is_facility_bound(self) -> bool:
        return self.facility_id is not None

    @property
    def is_hourly(self) -> bool:
        return self.pricing_type == AddonPricingType.HOURLY


class PackageAddon(TimestampModel):
    """Package-specific add-on terms: bundled for free or sold at a special price."""

    __tablename__ = "package_addons"
    __table_args__ = (
        UniqueConstraint("package_id", "addon_id", name="uq_package_addons_package_addon"),
    )

    package_id: Mapped[str] = mapped_column(
        ForeignKey("packages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addon_id: Mapped[str] = mapped_column(
        ForeignKey("addons.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    discount_percentage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    final_price: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)

    package: Mapped["Package"] = relationship(back_populates="package_addons")
    addon: Mapped["Addon"] = relationship()
