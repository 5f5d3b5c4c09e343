"""
Discount endpoints: code validation for checkout and staff administration.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studio_booking.api.deps import get_actor, get_discount_service, to_response
from studio_booking.core.permissions import ActorContext
from studio_booking.schemas.discount.discount import DiscountCreate, DiscountUpdate
from studio_booking.services.discount.discount_service import DiscountService

router = APIRouter(prefix="/discounts", tags=["Discounts"])


@router.get("/validate")
def validate_code(
    code: str,
    studio_id: str,
    subtotal: Decimal = Query(..., ge=0),
    service: DiscountService = Depends(get_discount_service),
):
    return to_response(service.validate_code(code, studio_id, subtotal))


@router.get("/active")
def get_active_discounts(studio_id: str, service: DiscountService = Depends(get_discount_service)):
    return to_response(service.get_active_discounts(studio_id))


@router.get("")
def list_discounts(
    studio_id: Optional[str] = None,
    actor: ActorContext = Depends(get_actor),
    service: DiscountService = Depends(get_discount_service),
):
    return to_response(service.list_discounts(actor, studio_id))


@router.post("")
def create_discount(
    data: DiscountCreate,
    actor: ActorContext = Depends(get_actor),
    service: DiscountService = Depends(get_discount_service),
):
    return to_response(service.create_discount(actor, data), success_status=status.HTTP_201_CREATED)


@router.patch("/{discount_id}")
def update_discount(
    discount_id: str,
    data: DiscountUpdate,
    actor: ActorContext = Depends(get_actor),
    service: DiscountService = Depends(get_discount_service),
):
    return to_response(service.update_discount(actor, discount_id, data))


@router.delete("/{discount_id}")
def delete_discount(
    discount_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DiscountService = Depends(get_discount_service),
):
    return to_response(service.delete_discount(actor, discount_id))
