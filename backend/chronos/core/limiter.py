"""Rate limiting configuration."""

from __future__ import annotations

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from chronos.core.config import settings

logger = logging.getLogger(__name__)

# Use a redis:// URI in production so limits hold across instances
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
logger.debug("Rate limiter configured with storage %s", settings.RATE_LIMIT_STORAGE_URI)
