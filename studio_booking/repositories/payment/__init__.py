from studio_booking.repositories.payment.payment_repository import PaymentRepository

__all__ = ["PaymentRepository"]
