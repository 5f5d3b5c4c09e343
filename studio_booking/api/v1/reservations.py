"""
Reservation endpoints: quote, create, status actions, reschedule and
cancellation info.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from studio_booking.api.deps import get_actor, get_reservation_service, to_response
from studio_booking.core.permissions import ActorContext
from studio_booking.schemas.booking.quote import QuoteRequest
from studio_booking.schemas.booking.reservation import (
    AddonTimeAdjustment,
    CancelRequest,
    ReservationCreate,
    RescheduleRequest,
    StatusActionRequest,
)
from studio_booking.services.booking.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _reason(body: Optional[StatusActionRequest]) -> Optional[str]:
    return body.reason if body else None


@router.post("/quote")
def quote(request: QuoteRequest, service: ReservationService = Depends(get_reservation_service)):
    return to_response(service.quote(request))


@router.post("")
def create_reservation(
    data: ReservationCreate,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.create_reservation(actor, data), success_status=status.HTTP_201_CREATED)


@router.get("/stats")
def get_stats(
    studio_id: Optional[str] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.get_stats(actor, studio_id))


@router.get("/{reservation_id}")
def get_reservation(reservation_id: str, service: ReservationService = Depends(get_reservation_service)):
    return to_response(service.get_reservation(reservation_id))


@router.get("/{reservation_id}/events")
def get_events(
    reservation_id: str,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.get_events(actor, reservation_id))


@router.get("/{reservation_id}/cancellation-info")
def get_cancellation_info(reservation_id: str, service: ReservationService = Depends(get_reservation_service)):
    return to_response(service.get_cancellation_info(reservation_id))


@router.post("/{reservation_id}/confirm")
def confirm(
    reservation_id: str,
    body: Optional[StatusActionRequest] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.confirm(actor, reservation_id, _reason(body)))


@router.post("/{reservation_id}/start")
def start_session(
    reservation_id: str,
    body: Optional[StatusActionRequest] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.start_session(actor, reservation_id, _reason(body)))


@router.post("/{reservation_id}/complete")
def complete(
    reservation_id: str,
    body: Optional[StatusActionRequest] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.complete(actor, reservation_id, _reason(body)))


@router.post("/{reservation_id}/no-show")
def mark_no_show(
    reservation_id: str,
    body: Optional[StatusActionRequest] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.mark_no_show(actor, reservation_id, _reason(body)))


@router.post("/{reservation_id}/cancel")
def cancel(
    reservation_id: str,
    body: Optional[CancelRequest] = None,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(
        service.cancel(
            actor,
            reservation_id,
            _reason(body),
            contact_phone=body.contact_phone if body else None,
        )
    )


@router.post("/{reservation_id}/complete-payment")
def complete_payment(
    reservation_id: str,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.complete_payment(actor, reservation_id))


@router.post("/{reservation_id}/reschedule")
def reschedule(
    reservation_id: str,
    data: RescheduleRequest,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.reschedule(actor, reservation_id, data))


@router.post("/{reservation_id}/addon-time")
def adjust_addon_time(
    reservation_id: str,
    data: AddonTimeAdjustment,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.adjust_addon_time(actor, reservation_id, data))


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: str,
    actor: ActorContext = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return to_response(service.delete_reservation(actor, reservation_id))
