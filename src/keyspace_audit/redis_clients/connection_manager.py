# keyspace_audit/redis_clients/connection_manager.py
import logging
from typing import Any, Dict, Optional

import redis

from keyspace_audit.audit.errors import StoreConnectionError
from keyspace_audit.config_utils import RedisSettings

logger = logging.getLogger(__name__)


def build_connection_kwargs(
    host: str,
    port: int,
    db: int,
    settings: Optional[RedisSettings] = None,
    password: Optional[str] = None,
) -> Dict[str, Any]:
    """Connection arguments for the audit client (always decoded to str)."""
    settings = settings or RedisSettings()
    connection_kwargs = {
        'host': host,
        'port': port,
        'db': db,
        'decode_responses': True,
        'encoding': 'utf-8',
        # Undecodable key bytes round-trip as surrogates
        'encoding_errors': 'surrogateescape',
        'socket_timeout': settings.socket_timeout,
        'socket_connect_timeout': settings.socket_connect_timeout,
        'health_check_interval': settings.health_check_interval,
        # Retries are handled by retry_transient so the attempt count is bounded in one place
        'retry_on_timeout': False,
    }
    if password:
        connection_kwargs['password'] = password
    return connection_kwargs


def connect_redis(
    host: str,
    port: int,
    db: int,
    settings: Optional[RedisSettings] = None,
    password: Optional[str] = None,
) -> redis.Redis:
    """
    Open a client and verify it with PING.

    Raises:
        StoreConnectionError: the server is unreachable, refused the
        credentials, or rejected the database index
    """
    client = redis.Redis(**build_connection_kwargs(host, port, db, settings, password))
    try:
        client.ping()
        info = client.info("server")
    except redis.exceptions.AuthenticationError as exc:
        client.close()
        raise StoreConnectionError(f"Authentication failed for {host}:{port}: {exc}") from exc
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as exc:
        client.close()
        raise StoreConnectionError(f"Failed to connect to Redis at {host}:{port}: {exc}") from exc
    except redis.exceptions.RedisError as exc:
        client.close()
        raise StoreConnectionError(f"Connection to {host}:{port} db {db} failed: {exc}") from exc

    logger.info(
        f"✓ Connected to Redis {info.get('redis_version', 'unknown')} (db={db}) at {host}:{port}"
    )
    return client
