"""
Outcome envelope for engine operations.

Booking operations never raise to their callers. A denied transition, a
slot conflict or a bad discount code comes back as a failed
``ServiceResult`` whose message is the reason shown to staff or customers.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar


class ErrorCode(str, Enum):
    """Failure categories; the HTTP layer maps each one to a status code."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    INVALID_STATE = "INVALID_STATE"
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorSeverity(str, Enum):
    # Expected denials are WARNING, unexpected faults CRITICAL
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.WARNING
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    timestamp: datetime = dataclasses.field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "field": self.field,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Success carries ``data``; failure carries ``error``. ``metadata`` holds
    side information such as ``noop`` for repeated transitions or the
    add-ons a reschedule flagged.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message, metadata=dict(metadata or {}))

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def not_found(cls, resource_type: str, resource_id: Optional[str] = None) -> "ServiceResult[TData]":
        message = f"{resource_type} not found"
        if resource_id:
            message = f"{message} (ID: {resource_id})"
        return cls.failure(
            ServiceError(
                code=ErrorCode.NOT_FOUND,
                message=message,
                details={"resource_type": resource_type, "resource_id": resource_id},
            )
        )

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def add_metadata(self, key: str, value: Any) -> "ServiceResult[TData]":
        self.metadata[key] = value
        return self

    def to_dict(self) -> Dict[str, Any]:
        """The ``{success, message, metadata, data | error}`` envelope."""
        envelope: Dict[str, Any] = {
            "success": self.is_success,
            "message": self.message,
            "metadata": self.metadata,
        }
        if self.is_success:
            envelope["data"] = self.data
        else:
            envelope["error"] = self.error.to_dict() if self.error else None
        return envelope

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        state = "Success" if self.is_success else f"Failure[{self.error_code.value}]"
        return f"ServiceResult({state}: {self.message})" if self.message else f"ServiceResult({state})"


__all__ = ["ErrorCode", "ErrorSeverity", "ServiceError", "ServiceResult"]
