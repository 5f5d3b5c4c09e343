"""
Reservation repository: scheduling queries, row locks and booking codes.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.base.enums import PaymentStatus, ReservationStatus
from studio_booking.models.booking.reservation import Reservation, ReservationAddon
from studio_booking.models.payment.payment import Payment
from studio_booking.repositories.base.base_repository import BaseRepository


class ReservationRepository(BaseRepository[Reservation]):
    """Data access for reservations and their add-on lines."""

    def __init__(self, db: Session):
        super().__init__(Reservation, db)

    def find_by_booking_code(self, booking_code: str) -> Optional[Reservation]:
        try:
            return (
                self.db.query(Reservation)
                .filter(Reservation.booking_code == booking_code)
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by booking code failed: {str(e)}") from e

    def find_active_on_date(
        self,
        studio_id: str,
        reservation_date: date,
        statuses: Iterable[ReservationStatus],
        exclude_id: Optional[str] = None,
    ) -> List[Reservation]:
        """Reservations at a studio on a date whose status still occupies the slot."""
        try:
            query = self.db.query(Reservation).filter(
                Reservation.studio_id == studio_id,
                Reservation.reservation_date == reservation_date,
                Reservation.status.in_(list(statuses)),
            )
            if exclude_id:
                query = query.filter(Reservation.id != exclude_id)
            return query.order_by(Reservation.start_time).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find active reservations failed: {str(e)}") from e

    def find_facility_bookings(
        self,
        facility_id: str,
        reservation_date: date,
        statuses: Iterable[ReservationStatus],
        exclude_reservation_id: Optional[str] = None,
    ) -> List[ReservationAddon]:
        """
        Timed add-on lines holding a facility on a date, with their reservation loaded.

        Lines flagged for time adjustment after a reschedule no longer hold their window.
        """
        try:
            query = (
                self.db.query(ReservationAddon)
                .join(Reservation, ReservationAddon.reservation_id == Reservation.id)
                .options(selectinload(ReservationAddon.reservation).selectinload(Reservation.customer))
                .filter(
                    ReservationAddon.facility_id == facility_id,
                    ReservationAddon.start_time.isnot(None),
                    ReservationAddon.end_time.isnot(None),
                    ReservationAddon.needs_time_adjustment.is_(False),
                    Reservation.reservation_date == reservation_date,
                    Reservation.status.in_(list(statuses)),
                )
            )
            if exclude_reservation_id:
                query = query.filter(Reservation.id != exclude_reservation_id)
            return query.order_by(ReservationAddon.start_time).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find facility bookings failed: {str(e)}") from e

    def next_booking_code(self, prefix: str, booking_date: date) -> str:
        """
        Next code for the day: prefix + YYYYMMDD + 3-digit sequence.

        Must run under the studio lock so two writers cannot read the same maximum.
        """
        day_prefix = f"{prefix}{booking_date.strftime('%Y%m%d')}"
        try:
            last_code = (
                self.db.query(func.max(Reservation.booking_code))
                .filter(Reservation.booking_code.like(f"{day_prefix}%"))
                .scalar()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Booking code lookup failed: {str(e)}") from e

        sequence = 1
        if last_code:
            suffix = last_code[len(day_prefix):]
            if suffix.isdigit():
                sequence = int(suffix) + 1
        return f"{day_prefix}{sequence:03d}"

    def count_by_status(self, studio_id: Optional[str] = None) -> Dict[str, int]:
        try:
            query = self.db.query(Reservation.status, func.count(Reservation.id))
            if studio_id:
                query = query.filter(Reservation.studio_id == studio_id)
            rows = query.group_by(Reservation.status).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Count by status failed: {str(e)}") from e
        return {status.value: count for status, count in rows}

    def revenue_for_studio(self, studio_id: Optional[str] = None) -> Dict[str, object]:
        """
        Sum of totals over reservations that collected money.

        Outstanding is each booking's total less its paid payment rows.
        """
        paid = (
            select(func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.reservation_id == Reservation.id, Payment.status == PaymentStatus.PAID)
            .correlate(Reservation)
            .scalar_subquery()
        )
        balance = case((Reservation.total_amount > paid, Reservation.total_amount - paid), else_=0)
        try:
            query = self.db.query(
                func.coalesce(func.sum(Reservation.total_amount), 0),
                func.coalesce(func.sum(balance), 0),
            ).filter(
                Reservation.status.in_(
                    [
                        ReservationStatus.CONFIRMED,
                        ReservationStatus.IN_PROGRESS,
                        ReservationStatus.COMPLETED,
                    ]
                )
            )
            if studio_id:
                query = query.filter(Reservation.studio_id == studio_id)
            total, outstanding = query.one()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Revenue query failed: {str(e)}") from e
        return {"total_revenue": total, "outstanding": outstanding}
