"""
Discount schemas: admin CRUD payloads, the immutable terms snapshot the
validator works on, and the validation outcome.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator, model_validator

from studio_booking.models.base.enums import DiscountScope, DiscountType
from studio_booking.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    FrozenSchema,
)

__all__ = [
    "DiscountTerms",
    "DiscountValidation",
    "DiscountCreate",
    "DiscountUpdate",
    "DiscountResponse",
    "validate_discount_value",
]


class DiscountTerms(FrozenSchema):
    """Snapshot of a discount row, loaded once per validation."""

    id: str
    studio_id: str
    code: str
    name: str = ""
    type: DiscountType
    value: Decimal
    minimum_amount: Decimal = Decimal("0")
    maximum_discount: Optional[Decimal] = None
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    applies_to: DiscountScope = DiscountScope.ALL


class DiscountValidation(BaseSchema):
    """Outcome of checking a discount against a candidate subtotal."""

    is_valid: bool
    discount_amount: Decimal = Decimal("0")
    error: Optional[str] = None
    discount_id: Optional[str] = None
    code: Optional[str] = None


def validate_discount_value(discount_type: Optional[DiscountType], value: Optional[Decimal]) -> None:
    if discount_type is None or value is None:
        return
    if discount_type == DiscountType.PERCENTAGE and not (Decimal("0") < value <= Decimal("100")):
        raise ValueError("Percentage discount must be greater than 0 and at most 100")
    if discount_type == DiscountType.FIXED_AMOUNT and value <= 0:
        raise ValueError("Fixed discount amount must be greater than 0")


class DiscountCreate(BaseCreateSchema):
    """Payload for creating a discount."""

    studio_id: str
    code: str = Field(..., min_length=2, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: DiscountType
    value: Decimal
    minimum_amount: Decimal = Field(default=Decimal("0"), ge=0)
    maximum_discount: Optional[Decimal] = Field(default=None, gt=0)
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    applies_to: DiscountScope = DiscountScope.ALL

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_terms(self) -> "DiscountCreate":
        validate_discount_value(self.type, self.value)
        if self.type == DiscountType.FIXED_AMOUNT and self.maximum_discount is not None:
            raise ValueError("Maximum discount only applies to percentage discounts")
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be earlier than valid_from")
        return self


class DiscountUpdate(BaseUpdateSchema):
    """Partial update; the code stays unique per studio."""

    code: Optional[str] = Field(default=None, min_length=2, max_length=64)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = None
    minimum_amount: Optional[Decimal] = Field(default=None, ge=0)
    maximum_discount: Optional[Decimal] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    applies_to: Optional[DiscountScope] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class DiscountResponse(BaseResponseSchema):
    studio_id: str
    code: str
    name: str
    description: Optional[str] = None
    type: DiscountType
    value: Decimal
    minimum_amount: Decimal
    maximum_discount: Optional[Decimal] = None
    is_active: bool
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = None
    used_count: int
    applies_to: DiscountScope
    created_by: Optional[str] = None
