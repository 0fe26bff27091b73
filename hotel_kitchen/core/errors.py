"""
Kitchen Error Taxonomy

Every failure the core reports to a caller is one of these classes. The
FastAPI layer renders them into the standard response envelope using
status_code and error.
"""

from typing import Any, Optional


class KitchenError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    error: str = "kitchen_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.error,
            "message": self.message,
        }
        if self.field:
            payload["field"] = self.field
        return payload


class NotFound(KitchenError):
    """Order or staff member does not exist."""

    status_code = 404
    error = "not_found"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource.capitalize()} {identifier} not found", field=resource)
        self.resource = resource
        self.identifier = identifier


class InvalidTransition(KitchenError):
    """Requested status is not reachable from the order's current status."""

    status_code = 409
    error = "invalid_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change status from {current} to {requested}",
            field="status",
        )
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["currentStatus"] = self.current
        payload["requestedStatus"] = self.requested
        return payload


class DuplicateOrder(KitchenError):
    """Intake supplied an id that is already taken."""

    status_code = 409
    error = "duplicate_order"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} already exists", field="id")
        self.order_id = order_id


class InvalidStaff(KitchenError):
    """Assignee exists but its role may not take kitchen work."""

    status_code = 400
    error = "invalid_staff"

    def __init__(self, staff_id: str, role: str):
        super().__init__(
            f"Staff member {staff_id} with role '{role}' cannot be assigned",
            field="staffId",
        )
        self.staff_id = staff_id
        self.role = role


class ValidationError(KitchenError):
    """Malformed filter, paging, sort or body value."""

    status_code = 400
    error = "validation_error"


class AuthorizationError(KitchenError):
    """Actor is missing or lacks the permission for the operation."""

    status_code = 403
    error = "forbidden"


class InternalError(KitchenError):
    """Order store or real-time channel failure."""

    status_code = 500
    error = "internal_error"
