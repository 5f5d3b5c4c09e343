from studio_booking.repositories.booking.reservation_event_repository import ReservationEventRepository
from studio_booking.repositories.booking.reservation_repository import ReservationRepository

__all__ = ["ReservationRepository", "ReservationEventRepository"]
