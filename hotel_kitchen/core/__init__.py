"""
Core module initialization.
Exports configuration, errors and authorization utilities.
"""

from hotel_kitchen.core.config import (
    get_settings,
    reload_settings,
    get_kitchen_config,
    Settings,
    KitchenConfig,
    EnvironmentMode,
)
from hotel_kitchen.core.errors import (
    KitchenError,
    NotFound,
    InvalidTransition,
    DuplicateOrder,
    InvalidStaff,
    ValidationError,
    AuthorizationError,
    InternalError,
)
from hotel_kitchen.core.security import Actor, Role, Permission

__all__ = [
    "get_settings",
    "reload_settings",
    "get_kitchen_config",
    "Settings",
    "KitchenConfig",
    "EnvironmentMode",
    "KitchenError",
    "NotFound",
    "InvalidTransition",
    "DuplicateOrder",
    "InvalidStaff",
    "ValidationError",
    "AuthorizationError",
    "InternalError",
    "Actor",
    "Role",
    "Permission",
]
