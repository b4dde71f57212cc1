# backend/app/core/celery_app.py
from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "idea_validator_tasks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    imports=(
        'app.background.tasks',
    ),
    task_track_started=True,
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Threads avoid the fork-related asyncio issues entirely
    worker_pool='threads',
    worker_concurrency=4,

    # Reliability settings. Validation is never retried automatically,
    # so a task is acknowledged before it runs.
    task_acks_late=False,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_soft_time_limit=120,
    task_time_limit=180,

    # Connection settings
    broker_connection_retry_on_startup=True,
    broker_connection_retry=True,

    worker_max_tasks_per_child=50,
    worker_send_task_events=True,
    task_send_sent_event=True,
)
