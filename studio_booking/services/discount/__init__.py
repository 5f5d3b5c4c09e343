from studio_booking.services.discount.discount_service import DiscountService
from studio_booking.services.discount.discount_validator import compute_discount_amount, evaluate_discount

__all__ = ["DiscountService", "evaluate_discount", "compute_discount_amount"]
