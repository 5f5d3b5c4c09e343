from studio_booking.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    FrozenSchema,
)

__all__ = ["BaseSchema", "FrozenSchema", "BaseCreateSchema", "BaseUpdateSchema", "BaseResponseSchema"]
