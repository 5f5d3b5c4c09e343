from studio_booking.repositories.customer.customer_repository import CustomerRepository

__all__ = ["CustomerRepository"]
