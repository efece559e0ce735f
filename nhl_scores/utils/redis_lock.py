"""Redis lock guarding scheduled jobs against overlapping runs."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from ..logging import logger

LOCK_TIMEOUT_1MIN = 60
LOCK_TIMEOUT_30MIN = 1800
LOCK_TIMEOUT_2HOURS = 7200


def _redis_client():
    from ..config import settings
    import redis

    return redis.from_url(settings.redis_url)


def acquire_redis_lock(lock_name: str, timeout: int = LOCK_TIMEOUT_30MIN) -> bool:
    """SET NX EX the lock key. Returns True if acquired.

    A Redis outage must not stop ingestion, so connection errors count as
    acquired.
    """
    try:
        return bool(_redis_client().set(lock_name, "1", nx=True, ex=timeout))
    except Exception as exc:
        logger.warning("redis_lock_failed", lock=lock_name, error=str(exc))
        return True


def release_redis_lock(lock_name: str) -> None:
    try:
        _redis_client().delete(lock_name)
    except Exception as exc:
        logger.warning("redis_unlock_failed", lock=lock_name, error=str(exc))


@contextmanager
def job_lock(lock_name: str, timeout: int = LOCK_TIMEOUT_30MIN) -> Iterator[bool]:
    """Hold ``lock_name`` for the body; yields False when another run holds it."""
    acquired = acquire_redis_lock(lock_name, timeout=timeout)
    if not acquired:
        yield False
        return
    try:
        yield True
    finally:
        release_redis_lock(lock_name)
