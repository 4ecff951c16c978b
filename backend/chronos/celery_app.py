"""Celery application configuration."""

from __future__ import annotations

import logging

from celery import Celery
from celery.schedules import crontab

from chronos.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "chronos",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["chronos.tasks.mail", "chronos.tasks.invites"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    task_acks_late=True,  # Acknowledge tasks after execution
    task_reject_on_worker_lost=True,
    task_default_retry_delay=60,
    task_max_retries=5,
    task_retry_backoff=True,
    task_retry_backoff_max=600,
    task_retry_jitter=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=500,
    # Local development and tests run tasks inline
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
)

celery_app.conf.beat_schedule = {
    "purge-expired-invites": {
        "task": "chronos.tasks.invites.purge_expired_invites_task",
        "schedule": crontab(minute=0),  # Every hour
    },
}

logger.debug("Celery app configured with broker: %s", settings.CELERY_BROKER_URL)
