"""
Declarative base, column helpers and the abstract models every booking
table derives from.
"""

import enum
from datetime import datetime
from typing import Type
from uuid import uuid4

from sqlalchemy import DateTime, Enum, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


# Whole currency units; two decimals kept for gateway fees
Money = Numeric(12, 2)


def db_enum(enum_cls: Type[enum.Enum]) -> Enum:
    """Store enum values (not names) in a portable VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class BaseModel(Base):
    """String UUID primary key."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        comment="Primary key (UUID)",
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampModel(BaseModel):
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Record creation timestamp",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Record last update timestamp",
    )
