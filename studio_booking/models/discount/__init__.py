from studio_booking.models.discount.discount import Discount

__all__ = ["Discount"]
