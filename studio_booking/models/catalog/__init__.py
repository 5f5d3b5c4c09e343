from studio_booking.models.catalog.addon import Addon, PackageAddon
from studio_booking.models.catalog.package import Package

__all__ = ["Package", "Addon", "PackageAddon"]
