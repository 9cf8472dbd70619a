"""
Redis Retry Decorator
=====================

Retries store calls that fail on connection resets or timeouts.
"""

import functools
import logging
import time
from typing import Callable

import redis

from keyspace_audit.audit.errors import StoreConnectionError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)


def retry_transient(func: Callable) -> Callable:
    """
    Decorator for methods of objects carrying ``max_retries`` and
    ``retry_backoff`` attributes. Transient Redis errors are retried with a
    linearly growing sleep; once attempts run out the last error is raised as
    StoreConnectionError. Any other error propagates unchanged.

    Usage:
        @retry_transient
        def random_key(self):
            return self.client.randomkey()
    """
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        max_retries = max(1, getattr(self, "max_retries", 3))
        backoff = getattr(self, "retry_backoff", 0.1)
        for attempt in range(1, max_retries + 1):
            try:
                return func(self, *args, **kwargs)
            except TRANSIENT_ERRORS as exc:
                if attempt == max_retries:
                    logger.error(
                        f"❌ Redis operation failed after {max_retries} attempts: {func.__name__}: {exc}"
                    )
                    raise StoreConnectionError(f"{func.__name__} failed: {exc}") from exc
                logger.warning(
                    f"⚠️ {func.__name__} attempt {attempt}/{max_retries} failed ({exc}), retrying"
                )
                time.sleep(backoff * attempt)
    return wrapper
