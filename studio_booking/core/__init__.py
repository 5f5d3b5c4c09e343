"""
Core utilities: exceptions, logging and caller permissions.
"""

from studio_booking.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    BookingConflictError,
    ErrorCode,
    PolicyViolationError,
    RepositoryError,
    ResourceNotFoundError,
    ValidationError,
)
from studio_booking.core.logging import get_logger, setup_logging
from studio_booking.core.permissions import ActorContext, PermissionDenied, ensure_studio_scope, require_staff

__all__ = [
    "AuthorizationError",
    "BaseAppException",
    "BookingConflictError",
    "ErrorCode",
    "PolicyViolationError",
    "RepositoryError",
    "ResourceNotFoundError",
    "ValidationError",
    "get_logger",
    "setup_logging",
    "ActorContext",
    "PermissionDenied",
    "ensure_studio_scope",
    "require_staff",
]
