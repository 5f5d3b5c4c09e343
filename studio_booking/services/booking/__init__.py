"""
Booking lifecycle: policy rules, the reservation state machine and the
orchestrating ``ReservationService`` (imported from its own module).
"""

from studio_booking.services.booking.reservation_state import ReservationState, TransitionResult

__all__ = ["ReservationState", "TransitionResult"]
