"""
Audit configuration loader
==========================

Reads ``keyspace_audit/config/audit_config.yaml`` and turns it into frozen
settings objects. Missing sections fall back to the defaults below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from keyspace_audit.audit.errors import ConfigError
from keyspace_audit.audit.key_groups import KeyGroupRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "audit_config.yaml"


class MetadataFailurePolicy(Enum):
    """What the runner does when one key's metadata cannot be read"""
    SKIP = "skip"    # count the failure, keep sampling
    ABORT = "abort"  # stop the run with the partial result


class DebugFallback(Enum):
    AUTO = "auto"
    NEVER = "never"


@dataclass(frozen=True)
class RedisSettings:
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    health_check_interval: int = 30
    max_retries: int = 3
    retry_backoff_seconds: float = 0.1


@dataclass(frozen=True)
class AuditOptions:
    metadata_failure_policy: MetadataFailurePolicy = MetadataFailurePolicy.SKIP
    debug_fallback: DebugFallback = DebugFallback.AUTO
    progress_interval: int = 1000
    sample_key_limit: int = 10


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class AuditSettings:
    redis: RedisSettings = field(default_factory=RedisSettings)
    audit: AuditOptions = field(default_factory=AuditOptions)
    key_group_rules: Tuple[KeyGroupRule, ...] = ()
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "AuditSettings":
        raw = raw or {}
        redis_raw = _section(raw, "redis")
        audit_raw = _section(raw, "audit")
        logging_raw = _section(raw, "logging")

        redis_settings = RedisSettings(
            socket_timeout=float(redis_raw.get("socket_timeout", RedisSettings.socket_timeout)),
            socket_connect_timeout=float(
                redis_raw.get("socket_connect_timeout", RedisSettings.socket_connect_timeout)
            ),
            health_check_interval=int(
                redis_raw.get("health_check_interval", RedisSettings.health_check_interval)
            ),
            max_retries=int(redis_raw.get("max_retries", RedisSettings.max_retries)),
            retry_backoff_seconds=float(
                redis_raw.get("retry_backoff_seconds", RedisSettings.retry_backoff_seconds)
            ),
        )
        if redis_settings.max_retries < 1:
            raise ConfigError("redis.max_retries must be at least 1")

        options = AuditOptions(
            metadata_failure_policy=_enum(
                MetadataFailurePolicy,
                audit_raw.get("metadata_failure_policy", AuditOptions.metadata_failure_policy.value),
                "audit.metadata_failure_policy",
            ),
            debug_fallback=_enum(
                DebugFallback,
                audit_raw.get("debug_fallback", AuditOptions.debug_fallback.value),
                "audit.debug_fallback",
            ),
            progress_interval=int(audit_raw.get("progress_interval", AuditOptions.progress_interval)),
            sample_key_limit=int(audit_raw.get("sample_key_limit", AuditOptions.sample_key_limit)),
        )
        if options.sample_key_limit < 0:
            raise ConfigError("audit.sample_key_limit must not be negative")

        log_level = str(logging_raw.get("level", LoggingSettings.level)).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"logging.level {log_level!r} is not a logging level")
        logging_settings = LoggingSettings(
            level=log_level,
            format=str(logging_raw.get("format", LoggingSettings.format)),
        )

        return cls(
            redis=redis_settings,
            audit=options,
            key_group_rules=tuple(_parse_rules(raw.get("key_group_rules") or [])),
            logging=logging_settings,
        )


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return value


def _enum(enum_cls, value: Any, setting: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"{setting} must be one of: {choices} (got {value!r})") from None


def _parse_rules(entries: List[Any]) -> List[KeyGroupRule]:
    rules = []
    for entry in entries:
        if isinstance(entry, str):
            rules.append(KeyGroupRule.compile(entry))
        elif isinstance(entry, dict) and "pattern" in entry:
            rules.append(KeyGroupRule.compile(str(entry["pattern"]), entry.get("name")))
        else:
            raise ConfigError(f"key_group_rules entry must be a pattern or mapping: {entry!r}")
    return rules


def load_shared_config(config_name: str = DEFAULT_CONFIG_NAME) -> Dict[str, Any]:
    """Load a YAML file from the packaged config directory."""
    config_path = Path(__file__).resolve().parents[1] / "config" / config_name
    return _read_yaml(config_path)


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {config_path}: {exc}") from exc


def load_settings(path: Optional[Union[str, Path]] = None) -> AuditSettings:
    """
    Build AuditSettings from an explicit YAML path, or from the packaged
    defaults when ``path`` is None.
    """
    if path is None:
        raw = load_shared_config()
    else:
        raw = _read_yaml(Path(path).expanduser())
        logger.debug("Loaded audit config from %s", path)
    return AuditSettings.from_dict(raw)
