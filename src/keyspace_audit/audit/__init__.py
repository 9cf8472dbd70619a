"""
Audit core
==========

Key grouping, per-group statistics and report rendering. ``AuditRunner``
lives in ``keyspace_audit.audit.runner``.
"""

from .aggregator import GroupStatsAggregator
from .errors import (
    AuditAbortedError,
    AuditError,
    ConfigError,
    KeyMetadataError,
    KeyVanishedError,
    MalformedDebugInfoError,
    StoreCommandError,
    StoreConnectionError,
    UsageError,
)
from .key_groups import KeyGroupResolver, KeyGroupRule, normalize_key
from .models import GroupKey, GroupStats, SampledKeyRecord
from .report import ReportRenderer, format_bytes, format_duration, make_proportion_percentage

__all__ = [
    "GroupStatsAggregator",
    "AuditAbortedError",
    "AuditError",
    "ConfigError",
    "KeyMetadataError",
    "KeyVanishedError",
    "MalformedDebugInfoError",
    "StoreCommandError",
    "StoreConnectionError",
    "UsageError",
    "KeyGroupResolver",
    "KeyGroupRule",
    "normalize_key",
    "GroupKey",
    "GroupStats",
    "SampledKeyRecord",
    "ReportRenderer",
    "format_bytes",
    "format_duration",
    "make_proportion_percentage",
]
