"""Revoked-token storage shared by every API process."""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import redis
from redis.exceptions import ConnectionError, RedisError

from chronos.core.config import settings
from chronos.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

KEY_PREFIX = "revoked:"


class TokenRevocationStore(Protocol):
    """Set of revoked token ids where every entry expires with its token."""

    def revoke(self, jti: str, ttl_seconds: int) -> None: ...

    def is_revoked(self, jti: str) -> bool: ...


class InMemoryRevocationStore:
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._entries: dict[str, float] = {}

    def revoke(self, jti: str, ttl_seconds: int) -> None:
        self._entries[jti] = time.monotonic() + ttl_seconds

    def is_revoked(self, jti: str) -> bool:
        expires = self._entries.get(jti)
        if expires is None:
            return False
        if expires <= time.monotonic():
            self._entries.pop(jti, None)
            return False
        return True

    def clear(self) -> None:
        self._entries.clear()


class RedisRevocationStore:
    """Redis-backed store; keys carry a TTL equal to the token's remaining life.

    Fails closed: when Redis cannot be reached neither revocation nor the
    revocation check succeeds, and the request is answered with 503.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    def revoke(self, jti: str, ttl_seconds: int) -> None:
        try:
            self._client.setex(f"{KEY_PREFIX}{jti}", ttl_seconds, "1")
        except (ConnectionError, RedisError) as exc:
            logger.error("Failed to revoke token %s: %s", jti, exc)
            raise ServiceUnavailableError("Token revocation is unavailable") from exc

    def is_revoked(self, jti: str) -> bool:
        try:
            return bool(self._client.exists(f"{KEY_PREFIX}{jti}"))
        except (ConnectionError, RedisError) as exc:
            logger.error("Failed to check revocation of token %s: %s", jti, exc)
            raise ServiceUnavailableError("Token revocation is unavailable") from exc


_store: Optional[TokenRevocationStore] = None


def _build_store() -> TokenRevocationStore:
    if settings.REVOCATION_BACKEND != "redis":
        return InMemoryRevocationStore()

    # redis-py connects lazily, so an unreachable server surfaces per request
    pool = redis.ConnectionPool.from_url(
        settings.REDIS_URL, max_connections=50, decode_responses=True
    )
    logger.info("Token revocation store using Redis at %s", settings.REDIS_URL)
    return RedisRevocationStore(redis.Redis(connection_pool=pool))


def get_revocation_store() -> TokenRevocationStore:
    """FastAPI dependency returning the process-wide revocation store."""
    global _store
    if _store is None:
        _store = _build_store()
    return _store
