"""
Payment repository.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.base.enums import PaymentStatus
from studio_booking.models.payment.payment import Payment
from studio_booking.repositories.base.base_repository import BaseRepository


class PaymentRepository(BaseRepository[Payment]):

    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def list_for_reservation(self, reservation_id: str) -> List[Payment]:
        try:
            return (
                self.db.query(Payment)
                .filter(Payment.reservation_id == reservation_id)
                .order_by(Payment.created_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"List payments failed: {str(e)}") from e

    def find_by_external_id(self, external_payment_id: str) -> Optional[Payment]:
        try:
            return (
                self.db.query(Payment)
                .filter(Payment.external_payment_id == external_payment_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find payment failed: {str(e)}") from e

    def has_paid(self, reservation_id: str) -> bool:
        try:
            return (
                self.db.query(Payment.id)
                .filter(Payment.reservation_id == reservation_id, Payment.status == PaymentStatus.PAID)
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Paid payment check failed: {str(e)}") from e

    def total_paid(self, reservation_id: str) -> Decimal:
        try:
            total = (
                self.db.query(func.coalesce(func.sum(Payment.amount), 0))
                .filter(Payment.reservation_id == reservation_id, Payment.status == PaymentStatus.PAID)
                .scalar()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Total paid query failed: {str(e)}") from e
        return Decimal(str(total or 0))

    def cascade_status(
        self,
        reservation_id: str,
        new_status: PaymentStatus,
        from_statuses: Optional[Iterable[PaymentStatus]] = None,
    ) -> int:
        """
        Move every payment of a reservation to ``new_status``.

        Rows already in ``new_status`` are untouched, so repeating the
        cascade changes nothing. Returns the number of rows changed.
        """
        changed = 0
        for payment in self.list_for_reservation(reservation_id):
            if payment.status == new_status:
                continue
            if from_statuses is not None and payment.status not in set(from_statuses):
                continue
            payment.status = new_status
            changed += 1
        if changed:
            try:
                self.db.flush()
            except SQLAlchemyError as e:
                raise RepositoryError(f"Payment cascade failed: {str(e)}", operation="cascade") from e
        return changed
