from studio_booking.models.customer.customer import Customer

__all__ = ["Customer"]
