from studio_booking.repositories.discount.discount_repository import DiscountRepository

__all__ = ["DiscountRepository"]
