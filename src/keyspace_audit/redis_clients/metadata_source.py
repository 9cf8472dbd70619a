"""
Key Metadata Source
===================

Boundary between the audit core and the store. The core only ever sees a
``SampledKeyRecord`` of parsed integers; DEBUG OBJECT text and Redis reply
conventions (TTL -1 / -2, TYPE "none") are handled here.

Per-key metadata is read in one MULTI/EXEC transaction so TYPE, size, idle
time and TTL all describe the same snapshot of the key.
"""

import logging
import re
from typing import Any, List, Optional, Protocol, Tuple

import redis

from keyspace_audit.audit.errors import (
    KeyVanishedError,
    MalformedDebugInfoError,
    StoreCommandError,
)
from keyspace_audit.audit.models import SampledKeyRecord
from keyspace_audit.config_utils import DebugFallback
from keyspace_audit.redis_clients.decorators import retry_transient

logger = logging.getLogger(__name__)

SERIALIZED_LENGTH_RE = re.compile(r"serializedlength:(\d+)")
IDLE_SECONDS_RE = re.compile(r"lru_seconds_idle:(\d+)")

TTL_NO_EXPIRY = -1
TTL_MISSING_KEY = -2


class KeyMetadataSource(Protocol):
    def random_key(self) -> Optional[str]:
        ...

    def fetch(self, key: str) -> SampledKeyRecord:
        ...

    def key_count(self) -> int:
        ...


def _ensure_str(value: Any) -> str:
    """Convert bytes to string if needed."""
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='surrogateescape')
    return str(value)


def parse_debug_info(key: str, raw: Any) -> Tuple[int, int]:
    """
    Extract ``(serialized_length, idle_seconds)`` from a DEBUG OBJECT reply.

    Accepts the raw text line or the dict redis-py builds from it.
    """
    if isinstance(raw, dict):
        try:
            return int(raw["serializedlength"]), int(raw["lru_seconds_idle"])
        except (KeyError, TypeError, ValueError):
            raise MalformedDebugInfoError(key, raw) from None

    text = _ensure_str(raw)
    length_match = SERIALIZED_LENGTH_RE.search(text)
    idle_match = IDLE_SECONDS_RE.search(text)
    if length_match is None or idle_match is None:
        raise MalformedDebugInfoError(key, text)
    return int(length_match.group(1)), int(idle_match.group(1))


def parse_ttl(key: str, ttl: Any) -> Optional[int]:
    """TTL reply -> seconds, or None when the key never expires."""
    ttl = int(ttl)
    if ttl == TTL_MISSING_KEY:
        raise KeyVanishedError(key)
    if ttl == TTL_NO_EXPIRY:
        return None
    return ttl


def _is_missing_key_error(exc: Exception) -> bool:
    return "no such key" in str(exc).lower()


class RedisKeyMetadataSource:
    """
    KeyMetadataSource backed by a redis-py client.

    When DEBUG is disabled on the server (``enable-debug-command no``) and
    ``debug_fallback`` is AUTO, sizes come from MEMORY USAGE and idle times
    from OBJECT IDLETIME for the rest of the run.
    """

    def __init__(
        self,
        client: redis.Redis,
        max_retries: int = 3,
        retry_backoff: float = 0.1,
        debug_fallback: DebugFallback = DebugFallback.AUTO,
    ):
        self.client = client
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.debug_fallback = debug_fallback
        self.use_debug_object = True

    @retry_transient
    def random_key(self) -> Optional[str]:
        key = self.client.randomkey()
        return None if key is None else _ensure_str(key)

    @retry_transient
    def key_count(self) -> int:
        return int(self.client.dbsize())

    @retry_transient
    def key_type(self, key: str) -> str:
        return _ensure_str(self.client.type(key))

    @retry_transient
    def time_to_live(self, key: str) -> Optional[int]:
        return parse_ttl(key, self.client.ttl(key))

    @retry_transient
    def debug_info(self, key: str) -> str:
        """Raw DEBUG OBJECT line for ``key``."""
        try:
            return _ensure_str(self.client.execute_command("DEBUG", "OBJECT", key))
        except redis.exceptions.ResponseError as exc:
            if _is_missing_key_error(exc):
                raise KeyVanishedError(key) from exc
            raise StoreCommandError(f"DEBUG OBJECT rejected: {exc}") from exc

    @retry_transient
    def fetch(self, key: str) -> SampledKeyRecord:
        """Type, size, idle time and TTL of ``key`` from one transaction."""
        results = self._snapshot(key)
        if results is None:
            # Debug fallback was just switched on, take the snapshot again
            results = self._snapshot(key)
            if results is None:
                raise StoreCommandError(f"metadata commands rejected for key {key!r}")

        key_type = _ensure_str(results[0])
        if key_type == "none":
            raise KeyVanishedError(key)

        if self.use_debug_object:
            serialized_length, idle_time = parse_debug_info(key, results[1])
        else:
            serialized_length, idle_time = self._parse_fallback(key, results[1], results[2])

        ttl_reply = results[-1]
        if isinstance(ttl_reply, redis.exceptions.ResponseError):
            raise MalformedDebugInfoError(key, ttl_reply)
        ttl = parse_ttl(key, ttl_reply)

        return SampledKeyRecord(
            key=key,
            key_type=key_type,
            idle_time=idle_time,
            serialized_length=serialized_length,
            ttl=ttl,
        )

    def _snapshot(self, key: str) -> Optional[List[Any]]:
        """
        Replies for TYPE, the size/idle commands and TTL, or None when a
        rejected DEBUG OBJECT switched the source to the fallback commands.
        """
        with self.client.pipeline(transaction=True) as pipe:
            pipe.type(key)
            if self.use_debug_object:
                pipe.execute_command("DEBUG", "OBJECT", key)
            else:
                pipe.memory_usage(key)
                pipe.object("idletime", key)
            pipe.ttl(key)
            try:
                results = pipe.execute(raise_on_error=False)
            except redis.exceptions.ResponseError as exc:
                # A command refused while queueing aborts the whole EXEC
                self._handle_snapshot_error(key, exc)
                return None

        for result in results[1:-1]:
            if isinstance(result, redis.exceptions.ResponseError):
                self._handle_snapshot_error(key, result)
                return None
        return results

    def _handle_snapshot_error(self, key: str, exc: Exception) -> None:
        """
        Classify a command error from the snapshot. Returns only after
        switching to the MEMORY USAGE / OBJECT IDLETIME fallback.
        """
        if _is_missing_key_error(exc):
            raise KeyVanishedError(key) from exc
        if self.use_debug_object and self.debug_fallback is DebugFallback.AUTO:
            logger.warning(
                f"⚠️ DEBUG OBJECT unavailable ({exc}); falling back to MEMORY USAGE and OBJECT IDLETIME"
            )
            self.use_debug_object = False
            return
        raise StoreCommandError(f"metadata command rejected for key {key!r}: {exc}") from exc

    @staticmethod
    def _parse_fallback(key: str, memory_usage: Any, idle_time: Any) -> Tuple[int, int]:
        if memory_usage is None or idle_time is None:
            # Both replies are nil once the key is gone
            raise KeyVanishedError(key)
        try:
            return int(memory_usage), int(idle_time)
        except (TypeError, ValueError):
            raise MalformedDebugInfoError(key, (memory_usage, idle_time)) from None
