"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend, and the
beat schedule that releases scheduled meal-plan orders into the queue.
"""

from celery import Celery

from hotel_kitchen.core.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    'kitchen_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['hotel_kitchen.tasks']  # Module containing our tasks
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.kitchen_timezone,
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # Process one task at a time
    worker_concurrency=2,

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Task execution settings
    task_acks_late=True,  # Acknowledge task after completion
    task_reject_on_worker_lost=True,  # Requeue task if worker dies

    broker_connection_retry_on_startup=True,

    # Periodic jobs (run with `celery -A hotel_kitchen.celery_worker beat`)
    beat_schedule={
        'release-due-meal-plan-orders': {
            'task': 'hotel_kitchen.tasks.release_due_meal_plan_orders',
            'schedule': float(settings.meal_plan_release_interval_seconds),
        },
    },
)


if __name__ == '__main__':
    celery_app.start()
