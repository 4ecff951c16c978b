"""Helpers for queueing Celery tasks from request handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def safe_celery_delay(task, *args, **kwargs) -> Optional[Any]:
    """
    Queue a Celery task without failing the request.

    When the broker is unreachable (for example Redis is not running locally)
    the failure is logged and ``None`` is returned.
    """
    try:
        result = task.delay(*args, **kwargs)
        logger.debug("Celery task %s queued with ID: %s", task.name, result.id)
        return result
    except Exception as exc:  # broker errors vary by transport
        logger.warning(
            "Failed to queue Celery task %s: %s. Continuing without background delivery.",
            task.name,
            exc,
        )
        return None
