"""
Service layer foundations: result envelope, base service and transactions.
"""

from studio_booking.services.base.base_service import BaseService
from studio_booking.services.base.service_result import ErrorCode, ErrorSeverity, ServiceError, ServiceResult
from studio_booking.services.base.transaction_manager import TransactionContext, TransactionManager

__all__ = [
    "BaseService",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
    "TransactionContext",
    "TransactionManager",
]
