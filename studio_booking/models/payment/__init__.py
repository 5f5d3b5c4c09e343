from studio_booking.models.payment.payment import Payment

__all__ = ["Payment"]
