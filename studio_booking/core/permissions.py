"""
Caller identity and scope checks.

The identity layer resolves the caller once and hands an ``ActorContext``
to every engine call; the engine trusts it and never re-derives it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from studio_booking.core.exceptions import AuthorizationError
from studio_booking.models.base.enums import ActorRole

STAFF_ROLES = (ActorRole.ADMIN, ActorRole.CS)


class PermissionDenied(AuthorizationError):
    """Raised when the actor's role or studio scope does not allow an action."""

    def __init__(
        self,
        message: str,
        role: Optional[ActorRole] = None,
        required_permission: Optional[str] = None,
    ) -> None:
        super().__init__(message, required_permission=required_permission)
        self.role = role


@dataclass(frozen=True)
class ActorContext:
    """
    Resolved caller.

    Attributes:
        role: admin, cs (customer service, scoped to one studio) or anonymous
        studio_id: Studio scope for cs staff
        user_id: Staff or customer account id, if any
    """
    role: ActorRole = ActorRole.ANONYMOUS
    studio_id: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "ActorContext":
        return cls(role=ActorRole.ANONYMOUS)

    @classmethod
    def system(cls) -> "ActorContext":
        """Actor used for gateway callbacks."""
        return cls(role=ActorRole.ADMIN, user_id=None)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    def can_access_studio(self, studio_id: str) -> bool:
        if self.role == ActorRole.ADMIN:
            return True
        if self.role == ActorRole.CS:
            return self.studio_id is not None and self.studio_id == studio_id
        return False


def require_role(
    actor: ActorContext,
    allowed_roles: Iterable[ActorRole],
    *,
    error_message: Optional[str] = None,
) -> None:
    """
    Assert that the actor has one of the allowed roles.

    Raises:
        PermissionDenied: If the actor's role is not allowed
    """
    allowed = tuple(allowed_roles)
    if actor.role not in allowed:
        roles_str = ", ".join(r.value for r in allowed)
        raise PermissionDenied(
            error_message or f"Role '{actor.role.value}' is not one of: {roles_str}",
            role=actor.role,
        )


def require_staff(actor: ActorContext) -> None:
    require_role(actor, STAFF_ROLES, error_message="Staff access required")


def ensure_studio_scope(actor: ActorContext, studio_id: str) -> None:
    """
    Assert that a staff actor may act on the given studio.

    Admins act on any studio; cs staff only on their own.
    """
    require_staff(actor)
    if not actor.can_access_studio(studio_id):
        raise PermissionDenied(
            "You do not have access to this studio",
            role=actor.role,
            required_permission=f"studio:{studio_id}",
        )


__all__ = [
    "ActorContext",
    "PermissionDenied",
    "STAFF_ROLES",
    "require_role",
    "require_staff",
    "ensure_studio_scope",
]
