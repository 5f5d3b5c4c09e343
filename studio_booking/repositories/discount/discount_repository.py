"""
Discount repository.

Usage counters move only through single UPDATE statements so concurrent
bookings never lose an increment.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.discount.discount import Discount
from studio_booking.repositories.base.base_repository import BaseRepository


class DiscountRepository(BaseRepository[Discount]):

    def __init__(self, db: Session):
        super().__init__(Discount, db)

    def find_by_code(self, code: str, studio_id: str) -> Optional[Discount]:
        try:
            return (
                self.db.query(Discount)
                .filter(Discount.studio_id == studio_id, Discount.code == code.upper())
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find discount by code failed: {str(e)}") from e

    def code_exists(self, code: str, studio_id: str, exclude_id: Optional[str] = None) -> bool:
        try:
            query = self.db.query(Discount.id).filter(
                Discount.studio_id == studio_id,
                Discount.code == code.upper(),
            )
            if exclude_id:
                query = query.filter(Discount.id != exclude_id)
            return query.first() is not None
        except SQLAlchemyError as e:
            raise RepositoryError(f"Discount code check failed: {str(e)}") from e

    def list_for_studio(self, studio_id: Optional[str] = None) -> List[Discount]:
        try:
            query = self.db.query(Discount)
            if studio_id:
                query = query.filter(Discount.studio_id == studio_id)
            return query.order_by(Discount.created_at.desc()).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"List discounts failed: {str(e)}") from e

    def find_active(self, studio_id: str, now: datetime) -> List[Discount]:
        """Active, inside the validity window and under the usage limit."""
        try:
            return (
                self.db.query(Discount)
                .filter(
                    Discount.studio_id == studio_id,
                    Discount.is_active.is_(True),
                    or_(Discount.valid_from.is_(None), Discount.valid_from <= now),
                    or_(Discount.valid_until.is_(None), Discount.valid_until >= now),
                    or_(Discount.usage_limit.is_(None), Discount.used_count < Discount.usage_limit),
                )
                .order_by(Discount.code)
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find active discounts failed: {str(e)}") from e

    def increment_usage(self, discount_id: str) -> bool:
        """``used_count = used_count + 1``; False if the row is gone or the limit is reached."""
        stmt = (
            update(Discount)
            .where(
                Discount.id == discount_id,
                or_(Discount.usage_limit.is_(None), Discount.used_count < Discount.usage_limit),
            )
            .values(used_count=Discount.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter(stmt, discount_id, "increment")

    def release_usage(self, discount_id: str) -> bool:
        """``used_count = used_count - 1``, never below zero."""
        stmt = (
            update(Discount)
            .where(and_(Discount.id == discount_id, Discount.used_count > 0))
            .values(used_count=Discount.used_count - 1)
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter(stmt, discount_id, "release")

    def _execute_counter(self, stmt, discount_id: str, operation: str) -> bool:
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Discount usage {operation} failed: {str(e)}", operation=operation) from e

        # Keep any loaded instance in step with the row
        loaded = self.db.identity_map.get(self.db.identity_key(Discount, discount_id)) if result.rowcount else None
        if loaded is not None:
            self.db.expire(loaded, ["used_count"])
        return result.rowcount == 1
