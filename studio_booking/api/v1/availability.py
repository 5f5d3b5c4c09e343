"""
Availability endpoints: primary slots and facility add-on windows.
"""

from datetime import date, time
from typing import Optional

from fastapi import APIRouter, Depends, Query

from studio_booking.api.deps import get_availability_service, to_response
from studio_booking.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.get("/studios/{studio_id}/slots")
def get_available_slots(
    studio_id: str,
    reservation_date: date = Query(..., alias="date"),
    duration_minutes: int = Query(..., gt=0),
    exclude_reservation_id: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(
        service.get_available_slots(
            studio_id,
            reservation_date,
            duration_minutes,
            exclude_reservation_id=exclude_reservation_id,
        )
    )


@router.get("/studios/{studio_id}/check")
def check_slot(
    studio_id: str,
    reservation_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    end_time: time = Query(...),
    exclude_reservation_id: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(
        service.check_slot(studio_id, reservation_date, start_time, end_time, exclude_reservation_id)
    )


@router.get("/facilities/{facility_id}/check")
def check_facility(
    facility_id: str,
    reservation_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    duration_hours: Optional[int] = Query(default=None, gt=0),
    end_time: Optional[time] = None,
    exclude_reservation_id: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(
        service.check_facility_addon(
            facility_id,
            reservation_date,
            start_time,
            duration_hours=duration_hours,
            end_time=end_time,
            exclude_reservation_id=exclude_reservation_id,
        )
    )


@router.get("/facilities/{facility_id}/slots")
def get_facility_slots(
    facility_id: str,
    studio_id: str,
    reservation_date: date = Query(..., alias="date"),
    duration_hours: int = Query(..., gt=0),
    exclude_reservation_id: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service),
):
    return to_response(
        service.get_facility_addon_slots(
            facility_id,
            studio_id,
            reservation_date,
            duration_hours,
            exclude_reservation_id=exclude_reservation_id,
        )
    )
