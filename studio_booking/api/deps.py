"""
Shared FastAPI dependencies: database session, caller identity and the
``ServiceResult`` to HTTP response mapping.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from studio_booking.config.database import get_db_session
from studio_booking.core.permissions import ActorContext
from studio_booking.models.base.enums import ActorRole
from studio_booking.services.availability.availability_service import AvailabilityService
from studio_booking.services.base.service_result import ErrorCode, ServiceResult
from studio_booking.services.booking.reservation_service import ReservationService
from studio_booking.services.discount.discount_service import DiscountService

STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INSUFFICIENT_PERMISSIONS: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.BUSINESS_RULE_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_db():
    yield from get_db_session()


def get_actor(
    x_actor_role: Optional[str] = Header(default=None),
    x_studio_id: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
) -> ActorContext:
    """Identity resolved upstream and forwarded as headers; missing role means anonymous."""
    if not x_actor_role:
        return ActorContext(role=ActorRole.ANONYMOUS, user_id=x_user_id)
    try:
        role = ActorRole(x_actor_role.strip().lower())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown actor role")
    return ActorContext(role=role, studio_id=x_studio_id, user_id=x_user_id)


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    return ReservationService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_discount_service(db: Session = Depends(get_db)) -> DiscountService:
    return DiscountService(db)


def to_response(result: ServiceResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render the ``{success, data | error}`` envelope with a matching status code."""
    if result.is_success:
        code = success_status
    else:
        code = STATUS_BY_ERROR_CODE.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=jsonable_encoder(result.to_dict()))


__all__ = [
    "get_db",
    "get_actor",
    "get_reservation_service",
    "get_availability_service",
    "get_discount_service",
    "to_response",
]
