"""
Celery Tasks
Background jobs that drive the kitchen outside of HTTP requests.
"""

import asyncio
import logging
import time

from hotel_kitchen.celery_worker import celery_app
from hotel_kitchen.core.config import get_kitchen_config
from hotel_kitchen.core.timeutils import utcnow
from hotel_kitchen.database import dispose_engine
from hotel_kitchen.services.kitchen.service import KitchenService
from hotel_kitchen.services.realtime import get_broadcaster, get_publisher, reset_realtime
from hotel_kitchen.services.store import get_order_store, get_staff_directory, reset_stores

logger = logging.getLogger(__name__)


async def _release_due() -> list[str]:
    broadcaster = get_broadcaster()
    service = KitchenService(
        store=get_order_store(),
        staff_directory=get_staff_directory(),
        broadcaster=broadcaster,
        config=get_kitchen_config(),
    )
    try:
        return await service.release_due_meal_plans()
    finally:
        # Loop-bound clients cannot outlive this asyncio.run() call
        await broadcaster.drain()
        await get_publisher().close()
        await dispose_engine()
        reset_realtime()
        reset_stores()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def release_due_meal_plan_orders(self) -> dict:
    """
    Move scheduled meal-plan orders whose service day has begun to pending.

    Returns:
        dict: Released order ids and timing information
    """
    task_id = self.request.id
    start_time = time.time()

    released = asyncio.run(_release_due())

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: released {len(released)} meal-plan orders in {elapsed}s")
    return {
        'task_id': task_id,
        'released': released,
        'processing_time_seconds': elapsed,
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': utcnow().isoformat()
    }
