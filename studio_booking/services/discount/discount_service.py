"""
Storage-backed discount operations: validation against stored terms and
staff administration of discount codes.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from studio_booking.core.exceptions import EntityAlreadyExistsError, PolicyViolationError, ValidationError
from studio_booking.core.permissions import ActorContext, ensure_studio_scope, require_staff
from studio_booking.models.base.enums import DiscountType
from studio_booking.models.discount.discount import Discount
from studio_booking.repositories.base.base_repository import AuditContext
from studio_booking.repositories.discount.discount_repository import DiscountRepository
from studio_booking.schemas.discount.discount import (
    DiscountCreate,
    DiscountResponse,
    DiscountTerms,
    DiscountUpdate,
    DiscountValidation,
    validate_discount_value,
)
from studio_booking.services.base.base_service import BaseService
from studio_booking.services.base.service_result import ServiceResult
from studio_booking.services.discount.discount_validator import evaluate_discount
from studio_booking.utils.datetime_utils import DateTimeHelper


class DiscountService(BaseService[DiscountRepository]):
    """
    Discount codes for a studio.

    Admins manage any studio; cs staff only their own. Anonymous callers
    may only validate and list active codes.
    """

    def __init__(self, db_session: Session, repository: Optional[DiscountRepository] = None):
        super().__init__(repository or DiscountRepository(db_session), db_session)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def load_terms(self, discount_id: str) -> Optional[DiscountTerms]:
        discount = self.repository.find_by_id(discount_id)
        return DiscountTerms.model_validate(discount) if discount else None

    def validate(
        self,
        discount_id: str,
        candidate_subtotal: Decimal,
        studio_id: str,
        now: Optional[datetime] = None,
        package_amount: Optional[Decimal] = None,
        addon_amount: Optional[Decimal] = None,
    ) -> ServiceResult[DiscountValidation]:
        """Validate a stored discount against a candidate subtotal."""
        try:
            terms = self.load_terms(discount_id)
            if terms is None:
                return ServiceResult.not_found("Discount", discount_id)

            validation = evaluate_discount(
                terms,
                candidate_subtotal,
                studio_id,
                now or DateTimeHelper.studio_now(),
                package_amount=package_amount,
                addon_amount=addon_amount,
            )
            if not validation.is_valid:
                self._logger.info(
                    "Discount rejected",
                    extra={"discount_id": discount_id, "reason": validation.error},
                )
            return ServiceResult.success(validation)
        except Exception as e:
            return self._handle_exception(e, "validate discount", discount_id)

    def validate_code(
        self,
        code: str,
        studio_id: str,
        candidate_subtotal: Decimal,
        now: Optional[datetime] = None,
    ) -> ServiceResult[DiscountValidation]:
        discount = self.repository.find_by_code(code, studio_id)
        if discount is None:
            return ServiceResult.success(
                DiscountValidation(is_valid=False, error="Discount code not found", code=code.upper())
            )
        return self.validate(discount.id, candidate_subtotal, studio_id, now)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_by_code(self, code: str, studio_id: str) -> ServiceResult[DiscountResponse]:
        try:
            discount = self.repository.find_by_code(code, studio_id)
            if discount is None:
                return ServiceResult.not_found("Discount", code)
            return ServiceResult.success(DiscountResponse.model_validate(discount))
        except Exception as e:
            return self._handle_exception(e, "get discount by code", code)

    def get_active_discounts(
        self,
        studio_id: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult[List[DiscountResponse]]:
        try:
            rows = self.repository.find_active(studio_id, now or DateTimeHelper.studio_now())
            return ServiceResult.success([DiscountResponse.model_validate(row) for row in rows])
        except Exception as e:
            return self._handle_exception(e, "list active discounts", studio_id)

    def list_discounts(
        self,
        actor: ActorContext,
        studio_id: Optional[str] = None,
    ) -> ServiceResult[List[DiscountResponse]]:
        """Admins see every studio unless filtered; cs staff see only their own."""
        try:
            require_staff(actor)
            if not actor.is_admin:
                studio_id = actor.studio_id
            elif studio_id:
                ensure_studio_scope(actor, studio_id)
            rows = self.repository.list_for_studio(studio_id)
            return ServiceResult.success([DiscountResponse.model_validate(row) for row in rows])
        except Exception as e:
            return self._handle_exception(e, "list discounts", studio_id)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def create_discount(self, actor: ActorContext, data: DiscountCreate) -> ServiceResult[DiscountResponse]:
        try:
            ensure_studio_scope(actor, data.studio_id)
            with self.transaction():
                if self.repository.code_exists(data.code, data.studio_id):
                    raise EntityAlreadyExistsError(f"Discount code {data.code} already exists")
                discount = self.repository.create(
                    Discount(**data.model_dump(), used_count=0),
                    audit_context=AuditContext(user_id=actor.user_id, action="create_discount"),
                )
                response = DiscountResponse.model_validate(discount)

            self._log_operation("Discount created", discount.id, {"code": data.code})
            return ServiceResult.success(response, message="Discount created")
        except Exception as e:
            return self._handle_exception(e, "create discount", data.code)

    def update_discount(
        self,
        actor: ActorContext,
        discount_id: str,
        data: DiscountUpdate,
    ) -> ServiceResult[DiscountResponse]:
        try:
            with self.transaction():
                discount = self.repository.get_by_id(discount_id)
                ensure_studio_scope(actor, discount.studio_id)

                changes = data.model_dump(exclude_unset=True)
                new_type = changes.get("type", discount.type)
                new_value = changes.get("value", discount.value)
                try:
                    validate_discount_value(new_type, new_value)
                except ValueError as e:
                    raise ValidationError(str(e), field="value") from e
                if new_type == DiscountType.FIXED_AMOUNT and changes.get("maximum_discount") is not None:
                    raise ValidationError(
                        "Maximum discount only applies to percentage discounts",
                        field="maximum_discount",
                    )
                if new_type == DiscountType.FIXED_AMOUNT:
                    changes["maximum_discount"] = None

                new_code = changes.get("code")
                if new_code and self.repository.code_exists(new_code, discount.studio_id, exclude_id=discount.id):
                    raise EntityAlreadyExistsError(f"Discount code {new_code} already exists")

                discount = self.repository.update(discount.id, changes)
                response = DiscountResponse.model_validate(discount)

            self._log_operation("Discount updated", discount_id, {"fields": sorted(changes)})
            return ServiceResult.success(response, message="Discount updated")
        except Exception as e:
            return self._handle_exception(e, "update discount", discount_id)

    def delete_discount(self, actor: ActorContext, discount_id: str) -> ServiceResult[bool]:
        """Hard delete; refused once the code has been used (deactivate instead)."""
        try:
            with self.transaction():
                discount = self.repository.get_by_id(discount_id)
                ensure_studio_scope(actor, discount.studio_id)
                if discount.used_count > 0:
                    raise PolicyViolationError(
                        "Discount has already been used and cannot be deleted. Deactivate it instead."
                    )
                self.repository.delete(discount)

            self._log_operation("Discount deleted", discount_id)
            return ServiceResult.success(True, message="Discount deleted")
        except Exception as e:
            return self._handle_exception(e, "delete discount", discount_id)

    def set_active(self, actor: ActorContext, discount_id: str, is_active: bool) -> ServiceResult[DiscountResponse]:
        return self.update_discount(actor, discount_id, DiscountUpdate(is_active=is_active))


__all__ = ["DiscountService"]
