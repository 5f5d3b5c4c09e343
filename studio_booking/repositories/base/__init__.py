from studio_booking.repositories.base.base_repository import AuditContext, BaseRepository, ModelType

__all__ = ["AuditContext", "BaseRepository", "ModelType"]
