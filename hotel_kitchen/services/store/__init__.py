"""
Store Service Factory

Returns the in-memory or SQLAlchemy order store and staff directory based
on ENV_MODE configuration.

Usage:
    from hotel_kitchen.services.store import get_order_store

    store = get_order_store()
    order = await store.find_by_id(order_id)
"""

import logging
from functools import lru_cache

from hotel_kitchen.core.config import get_settings
from hotel_kitchen.services.store.base import (
    SORT_FIELDS,
    BaseOrderStore,
    BaseStaffDirectory,
    FindResult,
    SortSpec,
)
from hotel_kitchen.services.store.memory import InMemoryOrderStore, InMemoryStaffDirectory

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_store() -> BaseOrderStore:
    """
    Get the configured order store instance.

    Returns:
        BaseOrderStore: InMemoryOrderStore in development, SqlOrderStore otherwise
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Store: Using InMemoryOrderStore (development mode)")
        return InMemoryOrderStore()

    from hotel_kitchen.database import get_session_maker
    from hotel_kitchen.services.store.sql import SqlOrderStore

    logger.info(f"Order Store: Using SqlOrderStore ({settings.env_mode.value} mode)")
    return SqlOrderStore(get_session_maker())


@lru_cache()
def get_staff_directory() -> BaseStaffDirectory:
    """Get the configured staff directory instance."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Staff Directory: Using InMemoryStaffDirectory (development mode)")
        return InMemoryStaffDirectory()

    from hotel_kitchen.database import get_session_maker
    from hotel_kitchen.services.store.sql import SqlStaffDirectory

    logger.info(f"Staff Directory: Using SqlStaffDirectory ({settings.env_mode.value} mode)")
    return SqlStaffDirectory(get_session_maker())


def reset_stores() -> None:
    """Clear the cached store instances."""
    get_order_store.cache_clear()
    get_staff_directory.cache_clear()
    logger.debug("Store caches cleared")


__all__ = [
    "get_order_store",
    "get_staff_directory",
    "reset_stores",
    "BaseOrderStore",
    "BaseStaffDirectory",
    "FindResult",
    "SortSpec",
    "SORT_FIELDS",
    "InMemoryOrderStore",
    "InMemoryStaffDirectory",
]
