from studio_booking.models.studio.studio import BlockedSlot, Facility, Studio

__all__ = ["Studio", "Facility", "BlockedSlot"]
