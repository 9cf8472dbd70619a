"""
Redis Clients Module
====================

Connection setup, retry handling and the key metadata adapter used by the audit.
"""

from .connection_manager import build_connection_kwargs, connect_redis
from .decorators import retry_transient
from .metadata_source import (
    KeyMetadataSource,
    RedisKeyMetadataSource,
    parse_debug_info,
    parse_ttl,
)

__all__ = [
    "build_connection_kwargs",
    "connect_redis",
    "retry_transient",
    "KeyMetadataSource",
    "RedisKeyMetadataSource",
    "parse_debug_info",
    "parse_ttl",
]
