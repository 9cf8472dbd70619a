"""
keyspace_audit
==============

Samples a live Redis keyspace with RANDOMKEY, groups the sampled keys by an
inferred naming pattern and reports memory, expiry and idle-time statistics
per group.
"""

__version__ = "0.1.0"

from .audit import GroupKey, GroupStats, GroupStatsAggregator, KeyGroupResolver, ReportRenderer

__all__ = ["GroupKey", "GroupStats", "GroupStatsAggregator", "KeyGroupResolver", "ReportRenderer", "__version__"]
