from studio_booking.schemas.discount.discount import (
    DiscountCreate,
    DiscountResponse,
    DiscountTerms,
    DiscountUpdate,
    DiscountValidation,
)

__all__ = ["DiscountTerms", "DiscountValidation", "DiscountCreate", "DiscountUpdate", "DiscountResponse"]
