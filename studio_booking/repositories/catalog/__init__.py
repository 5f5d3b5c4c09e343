from studio_booking.repositories.catalog.catalog_repository import AddonRepository, PackageRepository
from studio_booking.repositories.catalog.studio_repository import (
    BlockedSlotRepository,
    FacilityRepository,
    StudioRepository,
)

__all__ = [
    "StudioRepository",
    "FacilityRepository",
    "BlockedSlotRepository",
    "PackageRepository",
    "AddonRepository",
]
