"""
API v1 Router - aggregates all v1 endpoints.
"""
from fastapi import APIRouter

from studio_booking.api.v1 import availability, discounts, reservations, webhooks

router = APIRouter(
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(reservations.router)
router.include_router(availability.router)
router.include_router(discounts.router)
router.include_router(webhooks.router)


@router.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}
