"""
Exceptions raised inside the booking engine.

They never cross a service boundary: ``BaseService`` turns each one into a
``ServiceResult`` failure with the same message, so the message is written
for the person who asked for the booking.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Booking rules
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    POLICY_VIOLATION = "POLICY_VIOLATION"
    INVALID_STATE = "INVALID_STATE"


class BaseAppException(Exception):
    """Root of the engine's exceptions: a message, a code and structured details."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, error_code={self.error_code.value!r})"


class ValidationError(BaseAppException):
    """Input the engine cannot accept; ``field`` names the offending input."""

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None):
        super().__init__(message, ErrorCode.VALIDATION_ERROR, {"field": field} if field else {})
        self.field = field


class ResourceNotFoundError(BaseAppException):
    def __init__(self, resource_type: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource_type} not found"
        if resource_id:
            message += f" (ID: {resource_id})"
        super().__init__(
            message,
            ErrorCode.RESOURCE_NOT_FOUND,
            {"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthorizationError(BaseAppException):
    def __init__(self, message: str = "Access denied", required_permission: Optional[str] = None):
        details = {"required_permission": required_permission} if required_permission else {}
        super().__init__(message, ErrorCode.INSUFFICIENT_PERMISSIONS, details)


class RepositoryError(BaseAppException):
    """A storage call failed; wraps the SQLAlchemy error text."""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, {"operation": operation} if operation else {})


class EntityAlreadyExistsError(RepositoryError):
    def __init__(self, message: str = "Duplicate entry"):
        super().__init__(message, operation="create")
        self.error_code = ErrorCode.DUPLICATE_ENTRY


# ----------------------------------------------------------------------
# Booking rules
# ----------------------------------------------------------------------


class BookingError(BaseAppException):
    def __init__(self, message: str, error_code: ErrorCode, reservation_id: Optional[str] = None):
        super().__init__(message, error_code, {"reservation_id": reservation_id} if reservation_id else {})


class BookingConflictError(BookingError):
    """The requested window overlaps an active booking, a facility booking or a block."""

    def __init__(
        self,
        message: str = "Booking conflict detected",
        conflicting_bookings: Optional[List[Dict[str, Any]]] = None,
        facility_id: Optional[str] = None,
    ):
        super().__init__(message, ErrorCode.BOOKING_CONFLICT)
        self.conflicting_bookings = conflicting_bookings or []
        self.details["conflicting_bookings"] = self.conflicting_bookings
        if facility_id:
            self.details["facility_id"] = facility_id


class PolicyViolationError(BookingError):
    """
    A rule denied the action. ``INVALID_STATE`` marks transitions the
    current status does not allow; everything else is a business rule
    (H-3 reschedule cutoff, delete after payment, used discount).
    """

    def __init__(
        self,
        message: str,
        reservation_id: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.POLICY_VIOLATION,
    ):
        super().__init__(message, error_code, reservation_id=reservation_id)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "ResourceNotFoundError",
    "AuthorizationError",
    "RepositoryError",
    "EntityAlreadyExistsError",
    "BookingError",
    "BookingConflictError",
    "PolicyViolationError",
]
