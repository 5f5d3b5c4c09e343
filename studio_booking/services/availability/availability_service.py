"""
Storage-backed availability: loads reservations, facility bookings and
blocked windows, then defers every decision to the pure checker.
"""

from datetime import date, datetime, time
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from studio_booking.config.settings import settings
from studio_booking.core.exceptions import ResourceNotFoundError, ValidationError
from studio_booking.models.base.enums import ReservationStatus
from studio_booking.models.booking.reservation import Reservation, ReservationAddon
from studio_booking.repositories.booking.reservation_repository import ReservationRepository
from studio_booking.repositories.catalog.studio_repository import (
    BlockedSlotRepository,
    FacilityRepository,
    StudioRepository,
)
from studio_booking.schemas.booking.availability import ConflictingBooking, SlotCheck, TimeSlot
from studio_booking.services.availability.availability_checker import (
    SlotCandidate,
    TimeWindow,
    find_conflicts,
    generate_slots,
    resolve_day_hours,
)
from studio_booking.services.base.base_service import BaseService
from studio_booking.services.base.service_result import ServiceResult
from studio_booking.utils.datetime_utils import DateTimeHelper


def active_statuses() -> List[ReservationStatus]:
    return [ReservationStatus(value) for value in settings.booking.ACTIVE_RESERVATION_STATUSES]


def _reservation_window(reservation: Reservation) -> TimeWindow:
    return TimeWindow.from_times(
        reservation.start_time,
        reservation.end_time,
        reservation.id,
        booking_code=reservation.booking_code,
        customer_name=reservation.customer.full_name if reservation.customer else None,
    )


def _addon_window(line: ReservationAddon) -> TimeWindow:
    reservation = line.reservation
    return TimeWindow.from_times(
        line.start_time,
        line.end_time,
        reservation.id,
        booking_code=reservation.booking_code,
        customer_name=reservation.customer.full_name if reservation.customer else None,
    )


def _to_conflict(window: TimeWindow) -> ConflictingBooking:
    return ConflictingBooking(
        reservation_id=window.owner_id,
        booking_code=window.info.get("booking_code"),
        customer_name=window.info.get("customer_name"),
        time_range=window.label,
    )


def _to_time_slot(candidate: SlotCandidate) -> TimeSlot:
    return TimeSlot(
        time=DateTimeHelper.format_time(DateTimeHelper.minutes_to_time(candidate.start)),
        end_time=DateTimeHelper.format_time(DateTimeHelper.minutes_to_time(candidate.end)),
        available=candidate.available,
        is_past=candidate.is_past,
        is_blocked=candidate.is_blocked,
        conflicting_booking=_to_conflict(candidate.conflict) if candidate.conflict else None,
    )


class AvailabilityService(BaseService[ReservationRepository]):
    """Primary slot and facility add-on availability for a studio."""

    def __init__(self, db_session: Session, repository: Optional[ReservationRepository] = None):
        super().__init__(repository or ReservationRepository(db_session), db_session)
        self.studios = StudioRepository(db_session)
        self.facilities = FacilityRepository(db_session)
        self.blocked_slots = BlockedSlotRepository(db_session)

    # -------------------------------------------------------------------------
    # Raw checks (used inside booking transactions; may raise)
    # -------------------------------------------------------------------------

    def find_slot_conflicts(
        self,
        studio_id: str,
        reservation_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[ConflictingBooking]:
        candidate = TimeWindow.from_times(start, end)
        existing = [
            _reservation_window(r)
            for r in self.repository.find_active_on_date(
                studio_id, reservation_date, active_statuses(), exclude_id=exclude_reservation_id
            )
        ]
        return [_to_conflict(w) for w in find_conflicts(candidate, existing, exclude_reservation_id)]

    def find_facility_conflicts(
        self,
        facility_id: Optional[str],
        reservation_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[ConflictingBooking]:
        """An add-on without a facility consumes nothing and never conflicts."""
        if not facility_id:
            return []
        candidate = TimeWindow.from_times(start, end)
        existing = [
            _addon_window(line)
            for line in self.repository.find_facility_bookings(
                facility_id, reservation_date, active_statuses(), exclude_reservation_id
            )
        ]
        existing += [
            TimeWindow.from_times(block.start_time, block.end_time, None, customer_name="Blocked")
            for block in self.blocked_slots.find_for_facility(facility_id, reservation_date)
        ]
        return [_to_conflict(w) for w in find_conflicts(candidate, existing, exclude_reservation_id)]

    # -------------------------------------------------------------------------
    # Service operations
    # -------------------------------------------------------------------------

    def check_slot(
        self,
        studio_id: str,
        reservation_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> ServiceResult[SlotCheck]:
        try:
            if end <= start:
                raise ValidationError("End time must be after start time", field="end_time")
            conflicts = self.find_slot_conflicts(studio_id, reservation_date, start, end, exclude_reservation_id)
            return ServiceResult.success(
                SlotCheck(
                    available=not conflicts,
                    conflicting_bookings=conflicts,
                    reason="Time slot is already booked" if conflicts else None,
                )
            )
        except Exception as e:
            return self._handle_exception(e, "check slot availability", studio_id)

    def get_available_slots(
        self,
        studio_id: str,
        reservation_date: date,
        duration_minutes: int,
        exclude_reservation_id: Optional[str] = None,
        now: Optional[datetime] = None,
        facility_ids: Optional[Sequence[str]] = None,
    ) -> ServiceResult[List[TimeSlot]]:
        """
        Enumerate start times across the studio's opening hours.

        Closed days and past dates give an empty list.
        """
        try:
            studio = self.studios.find_by_id(studio_id)
            if studio is None:
                raise ResourceNotFoundError("Studio", studio_id)

            now = now or DateTimeHelper.studio_now()
            if reservation_date < now.date():
                return ServiceResult.success([])

            day_hours = resolve_day_hours(
                studio.operating_hours,
                reservation_date,
                settings.booking.DEFAULT_OPERATING_HOURS,
            )
            occupied = [
                _reservation_window(r)
                for r in self.repository.find_active_on_date(
                    studio_id, reservation_date, active_statuses(), exclude_id=exclude_reservation_id
                )
            ]
            blocked = [
                TimeWindow.from_times(block.start_time, block.end_time)
                for block in self.blocked_slots.find_for_date(studio_id, reservation_date, facility_ids)
            ]
            candidates = generate_slots(
                day_hours,
                duration_minutes,
                settings.booking.SLOT_INTERVAL_MINUTES,
                occupied=occupied,
                blocked=blocked,
                day=reservation_date,
                now=now,
                exclude_id=exclude_reservation_id,
            )
            return ServiceResult.success([_to_time_slot(c) for c in candidates])
        except Exception as e:
            return self._handle_exception(e, "get available slots", studio_id)

    def check_facility_addon(
        self,
        facility_id: Optional[str],
        reservation_date: date,
        start: time,
        duration_hours: Optional[int] = None,
        end: Optional[time] = None,
        exclude_reservation_id: Optional[str] = None,
    ) -> ServiceResult[SlotCheck]:
        try:
            if end is None:
                if not duration_hours:
                    raise ValidationError("Either end time or duration is required", field="duration_hours")
                end = DateTimeHelper.add_minutes(start, duration_hours * 60)
            if end <= start:
                raise ValidationError("End time must be after start time", field="end_time")

            conflicts = self.find_facility_conflicts(
                facility_id, reservation_date, start, end, exclude_reservation_id
            )
            return ServiceResult.success(
                SlotCheck(
                    available=not conflicts,
                    conflicting_bookings=conflicts,
                    reason="Facility is already booked for this time" if conflicts else None,
                )
            )
        except Exception as e:
            return self._handle_exception(e, "check facility availability", facility_id)

    def get_facility_addon_slots(
        self,
        facility_id: str,
        studio_id: str,
        reservation_date: date,
        duration_hours: int,
        exclude_reservation_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[List[TimeSlot]]:
        """Start times, every slot interval, at which the facility is free for the duration."""
        try:
            studio = self.studios.find_by_id(studio_id)
            if studio is None:
                raise ResourceNotFoundError("Studio", studio_id)
            facility = self.facilities.find_by_id(facility_id)
            if facility is None or facility.studio_id != studio_id:
                raise ResourceNotFoundError("Facility", facility_id)
            if not facility.is_available:
                return ServiceResult.success([])

            day_hours = resolve_day_hours(
                studio.operating_hours,
                reservation_date,
                settings.booking.DEFAULT_OPERATING_HOURS,
            )
            occupied = [
                _addon_window(line)
                for line in self.repository.find_facility_bookings(
                    facility_id, reservation_date, active_statuses(), exclude_reservation_id
                )
            ]
            blocked = [
                TimeWindow.from_times(block.start_time, block.end_time)
                for block in self.blocked_slots.find_for_facility(facility_id, reservation_date)
            ]
            candidates = generate_slots(
                day_hours,
                duration_hours * 60,
                settings.booking.SLOT_INTERVAL_MINUTES,
                occupied=occupied,
                blocked=blocked,
                day=reservation_date,
                now=now or DateTimeHelper.studio_now(),
                exclude_id=exclude_reservation_id,
            )
            return ServiceResult.success([_to_time_slot(c) for c in candidates])
        except Exception as e:
            return self._handle_exception(e, "get facility slots", facility_id)


__all__ = ["AvailabilityService", "active_statuses"]
