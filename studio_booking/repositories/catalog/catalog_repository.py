"""
Package and add-on catalogue repositories.
"""

from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.catalog.addon import Addon, PackageAddon
from studio_booking.models.catalog.package import Package
from studio_booking.repositories.base.base_repository import BaseRepository


class PackageRepository(BaseRepository[Package]):

    def __init__(self, db: Session):
        super().__init__(Package, db)

    def list_active(self, studio_id: str) -> List[Package]:
        try:
            return (
                self.db.query(Package)
                .filter(Package.studio_id == studio_id, Package.is_active.is_(True))
                .order_by(Package.price)
                .all()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"List packages failed: {str(e)}") from e


class AddonRepository(BaseRepository[Addon]):

    def __init__(self, db: Session):
        super().__init__(Addon, db)

    def find_many(self, addon_ids: Iterable[str]) -> Dict[str, Addon]:
        ids = list(set(addon_ids))
        if not ids:
            return {}
        try:
            rows = self.db.query(Addon).filter(Addon.id.in_(ids)).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find add-ons failed: {str(e)}") from e
        return {addon.id: addon for addon in rows}

    def package_terms(self, package_id: str) -> Dict[str, PackageAddon]:
        """Package-specific add-on terms keyed by add-on id."""
        try:
            rows = self.db.query(PackageAddon).filter(PackageAddon.package_id == package_id).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find package add-on terms failed: {str(e)}") from e
        return {row.addon_id: row for row in rows}
