"""
Studio, facility and blocked-slot repositories.
"""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError, ResourceNotFoundError
from studio_booking.models.studio.studio import BlockedSlot, Facility, Studio
from studio_booking.repositories.base.base_repository import BaseRepository


class StudioRepository(BaseRepository[Studio]):

    def __init__(self, db: Session):
        super().__init__(Studio, db)

    def lock_for_booking(self, studio_id: str) -> Studio:
        """
        Take the studio row lock that serializes writers competing for its slots.

        Raises:
            ResourceNotFoundError: If the studio does not exist
        """
        studio = self.lock_by_id(studio_id)
        if studio is None:
            raise ResourceNotFoundError("Studio", studio_id)
        return studio


class FacilityRepository(BaseRepository[Facility]):

    def __init__(self, db: Session):
        super().__init__(Facility, db)


class BlockedSlotRepository(BaseRepository[BlockedSlot]):

    def __init__(self, db: Session):
        super().__init__(BlockedSlot, db)

    def find_for_date(
        self,
        studio_id: str,
        slot_date: date,
        facility_ids: Optional[Iterable[str]] = None,
    ) -> List[BlockedSlot]:
        """Studio-wide blocks plus blocks on any of the given facilities."""
        try:
            query = self.db.query(BlockedSlot).filter(
                BlockedSlot.studio_id == studio_id,
                BlockedSlot.slot_date == slot_date,
            )
            facility_ids = list(facility_ids or [])
            if facility_ids:
                query = query.filter(
                    or_(BlockedSlot.facility_id.is_(None), BlockedSlot.facility_id.in_(facility_ids))
                )
            else:
                query = query.filter(BlockedSlot.facility_id.is_(None))
            return query.order_by(BlockedSlot.start_time).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find blocked slots failed: {str(e)}") from e

    def find_for_facility(self, facility_id: str, slot_date: date) -> List[BlockedSlot]:
        try:
            return (
                self.db.query(BlockedSlot)
                .filter(BlockedSlot.facility_id == facility_id, BlockedSlot.slot_date == slot_date)
                .order_by(BlockedSlot.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find facility blocks failed: {str(e)}") from e
