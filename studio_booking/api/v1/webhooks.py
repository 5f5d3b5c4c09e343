"""
Payment gateway webhook.

The transport in front of this endpoint verifies the gateway signature;
this handler only folds the status change into the reservation.
"""

from fastapi import APIRouter, Depends

from studio_booking.api.deps import get_reservation_service, to_response
from studio_booking.schemas.payment.payment import PaymentWebhookEvent
from studio_booking.services.booking.reservation_service import ReservationService

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/payments")
def payment_webhook(event: PaymentWebhookEvent, service: ReservationService = Depends(get_reservation_service)):
    return to_response(service.handle_payment_webhook(event))
