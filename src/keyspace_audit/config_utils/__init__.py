"""
Utility helpers for configuration management.

Exposes the YAML-backed audit settings shared by the CLI and the runner.
"""

from .config_loader import (
    AuditOptions,
    AuditSettings,
    DebugFallback,
    LoggingSettings,
    MetadataFailurePolicy,
    RedisSettings,
    load_settings,
    load_shared_config,
)

__all__ = [
    "AuditOptions",
    "AuditSettings",
    "DebugFallback",
    "LoggingSettings",
    "MetadataFailurePolicy",
    "RedisSettings",
    "load_settings",
    "load_shared_config",
]
