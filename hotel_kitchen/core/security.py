"""
Authorization Seam

Authentication happens upstream: the gateway forwards the authenticated
user's id and role in the X-User-Id / X-User-Role headers. This module turns
those into an Actor and checks it against a closed role → permission table
before any kitchen operation runs.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from fastapi import Depends, Header

from hotel_kitchen.core.errors import AuthorizationError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Every role the hotel platform knows about."""
    GUEST = "guest"
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"


class Permission(str, Enum):
    """Kitchen operations guarded by the authorization seam."""
    VIEW_QUEUE = "view_queue"
    UPDATE_STATUS = "update_status"
    ASSIGN_ORDERS = "assign_orders"
    VIEW_STATS = "view_stats"
    INTAKE_ORDERS = "intake_orders"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.GUEST: frozenset(),
    Role.STAFF: frozenset({
        Permission.VIEW_QUEUE,
        Permission.UPDATE_STATUS,
        Permission.VIEW_STATS,
    }),
    Role.MANAGER: frozenset(Permission),
    Role.ADMIN: frozenset(Permission),
}


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of a kitchen operation."""
    id: str
    role: Role

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS[self.role]


def resolve_actor(user_id: Optional[str], role: Optional[str]) -> Actor:
    """
    Build an Actor from gateway-supplied identity.

    Raises:
        AuthorizationError: identity missing or role unknown
    """
    if not user_id or not role:
        raise AuthorizationError("Missing authenticated user")
    try:
        return Actor(id=user_id, role=Role(role.lower()))
    except ValueError:
        raise AuthorizationError(f"Unknown role '{role}'")


async def get_current_actor(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Actor:
    """FastAPI dependency resolving the calling actor."""
    return resolve_actor(x_user_id, x_user_role)


def require_permission(permission: Permission) -> Callable[..., Actor]:
    """
    Dependency factory: resolve the actor and enforce one permission.

    Example:
        @app.put("/kitchen/orders/{order_id}/assign")
        async def assign(actor: Actor = Depends(require_permission(Permission.ASSIGN_ORDERS))):
            ...
    """
    async def checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.can(permission):
            logger.warning(
                f"Actor {actor.id} ({actor.role.value}) denied {permission.value}"
            )
            raise AuthorizationError(
                f"Role '{actor.role.value}' is not allowed to {permission.value.replace('_', ' ')}"
            )
        return actor

    return checker
