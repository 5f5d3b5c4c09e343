"""
Generic repository over one model.

Repositories flush but never commit; the service that owns the unit of
work decides when a booking change becomes visible. Storage errors are
wrapped so services only ever see engine exceptions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import EntityAlreadyExistsError, RepositoryError, ResourceNotFoundError
from studio_booking.core.logging import get_logger
from studio_booking.models.base import BaseModel
from studio_booking.utils.datetime_utils import DateTimeHelper

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


@dataclass
class AuditContext:
    """Who performed a write; fills ``created_by`` on models that track it."""

    user_id: Optional[str] = None
    action: Optional[str] = None
    timestamp: datetime = field(default_factory=DateTimeHelper.utc_now)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _integrity_error(self, exc: IntegrityError) -> EntityAlreadyExistsError:
        return EntityAlreadyExistsError(f"{self.model.__name__} violates a uniqueness or integrity constraint")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, entity: ModelType, audit_context: Optional[AuditContext] = None) -> ModelType:
        """Add and flush, so generated ids and defaults are readable right away."""
        if audit_context and hasattr(entity, "created_by") and not entity.created_by:
            entity.created_by = audit_context.user_id
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as e:
            raise self._integrity_error(e) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed: {str(e)}", operation="create") from e
        logger.debug(f"Created {self.model.__name__} {entity.id}")
        return entity

    def update(self, id: str, data: Dict[str, Any]) -> ModelType:
        """Partial update; unknown keys are ignored."""
        entity = self.get_by_id(id)
        try:
            for key, value in data.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
        except IntegrityError as e:
            raise self._integrity_error(e) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Update failed: {str(e)}", operation="update") from e
        logger.debug(f"Updated {self.model.__name__} {id}", extra={"fields": sorted(data)})
        return entity

    def delete(self, entity: ModelType) -> None:
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Delete failed: {str(e)}", operation="delete") from e
        logger.debug(f"Deleted {self.model.__name__} {entity.id}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_by_id(self, id: str) -> Optional[ModelType]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}", operation="find_by_id") from e

    def get_by_id(self, id: str) -> ModelType:
        entity = self.find_by_id(id)
        if entity is None:
            raise ResourceNotFoundError(self.model.__name__, str(id))
        return entity

    def lock_by_id(self, id: str) -> Optional[ModelType]:
        """
        ``SELECT ... FOR UPDATE`` on one row.

        Column values are reloaded even when the row is already in the
        identity map, so decisions are made on committed state.
        """
        try:
            return (
                self.db.query(self.model)
                .filter(self.model.id == id)
                .with_for_update()
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Lock failed: {str(e)}", operation="lock_by_id") from e


__all__ = ["AuditContext", "BaseRepository", "ModelType"]
