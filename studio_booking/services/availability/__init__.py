from studio_booking.services.availability.availability_checker import (
    TimeWindow,
    find_conflicts,
    generate_slots,
    windows_overlap,
)
from studio_booking.services.availability.availability_service import AvailabilityService

__all__ = ["AvailabilityService", "TimeWindow", "find_conflicts", "generate_slots", "windows_overlap"]
