"""
Shared pydantic bases for booking payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
]


class BaseSchema(BaseModel):
    """Loads from ORM rows, strips whitespace and re-validates on assignment."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class FrozenSchema(BaseSchema):
    """Immutable value handed to the pure pricing, discount and availability functions."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)


class BaseCreateSchema(BaseSchema):
    pass


class BaseUpdateSchema(BaseSchema):
    """Partial updates: every field Optional, only the ones sent are applied."""


class BaseResponseSchema(BaseSchema):
    id: str
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)
