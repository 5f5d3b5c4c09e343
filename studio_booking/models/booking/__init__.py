from studio_booking.models.booking.reservation import Reservation, ReservationAddon
from studio_booking.models.booking.reservation_event import ReservationEvent

__all__ = ["Reservation", "ReservationAddon", "ReservationEvent"]
