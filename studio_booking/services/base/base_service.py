"""
Common plumbing for engine services: session, logger, unit of work and the
exception to ``ServiceResult`` translation.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session

from studio_booking.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    BookingConflictError,
    EntityAlreadyExistsError,
    ErrorCode as AppErrorCode,
    PolicyViolationError,
    ResourceNotFoundError,
    ValidationError,
)
from studio_booking.core.logging import get_logger
from studio_booking.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)
from studio_booking.services.base.transaction_manager import TransactionContext, TransactionManager

TRepo = TypeVar("TRepo")

# First match wins; subclasses must precede their bases
EXCEPTION_CODES: Tuple[Tuple[Type[Exception], ErrorCode], ...] = (
    (BookingConflictError, ErrorCode.CONFLICT),
    (EntityAlreadyExistsError, ErrorCode.ALREADY_EXISTS),
    (ValidationError, ErrorCode.VALIDATION_ERROR),
    (AuthorizationError, ErrorCode.INSUFFICIENT_PERMISSIONS),
    (ResourceNotFoundError, ErrorCode.NOT_FOUND),
)


class BaseService(Generic[TRepo]):
    """
    Services own the transaction boundary and report outcomes as
    ``ServiceResult``. Domain exceptions raised anywhere below them are
    caught in one place and become failures with the original reason.
    """

    def __init__(self, repository: TRepo, db_session: Session):
        self.repository: TRepo = repository
        self.db: Session = db_session
        self.tx = TransactionManager(db_session)
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Error translation
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        """
        Expected domain failures keep their message and are logged at info.
        Anything else is logged with its traceback and reported as an
        internal error without leaking the exception text as the reason.
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        error_code = self._map_exception_to_error_code(exception)

        if error_code != ErrorCode.INTERNAL_ERROR:
            self._logger.info(f"{operation} denied: {exception.message}", extra=context)
            return ServiceResult.failure(
                ServiceError(
                    code=error_code,
                    message=exception.message,
                    details=exception.details or None,
                    field=getattr(exception, "field", None),
                )
            )

        self._logger.error(f"Error during {operation}: {exception}", exc_info=True, extra=context)
        return ServiceResult.failure(
            ServiceError(
                code=ErrorCode.INTERNAL_ERROR,
                message=f"Failed to {operation}",
                severity=ErrorSeverity.CRITICAL,
                details={"error": str(exception), "entity_ref": context["entity_ref"]},
            )
        )

    @staticmethod
    def _map_exception_to_error_code(exception: Exception) -> ErrorCode:
        if not isinstance(exception, BaseAppException):
            return ErrorCode.INTERNAL_ERROR
        if isinstance(exception, PolicyViolationError):
            if exception.error_code == AppErrorCode.INVALID_STATE:
                return ErrorCode.INVALID_STATE
            return ErrorCode.BUSINESS_RULE_VIOLATION
        for exc_type, code in EXCEPTION_CODES:
            if isinstance(exception, exc_type):
                return code
        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, isolation_level: Optional[str] = None) -> Iterator[TransactionContext]:
        """
        Commit on success, roll back on any exception.

            with self.transaction("SERIALIZABLE") as ctx:
                ...
                ctx.outbox.append({...})
        """
        with self.tx.start(isolation_level=isolation_level) as ctx:
            yield ctx

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(operation, extra=context)


__all__ = ["BaseService", "EXCEPTION_CODES"]
