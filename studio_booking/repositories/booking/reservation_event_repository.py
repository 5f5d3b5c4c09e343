"""
Append-only reservation event log.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.base.enums import ReservationEventType
from studio_booking.models.booking.reservation_event import ReservationEvent
from studio_booking.repositories.base.base_repository import BaseRepository


class ReservationEventRepository(BaseRepository[ReservationEvent]):

    def __init__(self, db: Session):
        super().__init__(ReservationEvent, db)

    def record(
        self,
        reservation_id: str,
        event_type: ReservationEventType,
        occurred_at: datetime,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> ReservationEvent:
        try:
            last = (
                self.db.query(func.max(ReservationEvent.sequence))
                .filter(ReservationEvent.reservation_id == reservation_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Event sequence lookup failed: {str(e)}") from e

        return self.create(
            ReservationEvent(
                reservation_id=reservation_id,
                sequence=(last or 0) + 1,
                event_type=event_type,
                occurred_at=occurred_at,
                actor_id=actor_id,
                actor_role=actor_role,
                before=before,
                after=after,
                reason=reason,
            )
        )

    def list_for_reservation(self, reservation_id: str) -> List[ReservationEvent]:
        try:
            return (
                self.db.query(ReservationEvent)
                .filter(ReservationEvent.reservation_id == reservation_id)
                .order_by(ReservationEvent.sequence)
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"List events failed: {str(e)}") from e
