# keyspace_audit/audit/models.py
"""
Audit data types
================

- ``SampledKeyRecord``: metadata for one random-key draw
- ``GroupKey``: identity of an inferred key group (representative + type)
- ``GroupStats``: running statistics for every key routed to a group
"""

from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional

SAMPLE_KEY_LIMIT = 10


@dataclass(frozen=True)
class SampledKeyRecord:
    """One sampled key; ``ttl`` is None when the key never expires."""
    key: str
    key_type: str
    idle_time: int
    serialized_length: int
    ttl: Optional[int] = None


class GroupKey(NamedTuple):
    representative: str
    key_type: str


@dataclass
class GroupStats:
    """Container for stats around a key group"""
    total_instances: int = 0
    total_idle_time: int = 0
    total_serialized_length: int = 0
    total_expirys_set: int = 0

    min_serialized_length: Optional[int] = None
    max_serialized_length: Optional[int] = None
    min_idle_time: Optional[int] = None
    max_idle_time: Optional[int] = None
    max_ttl: Optional[int] = None

    sample_keys: Dict[str, str] = field(default_factory=dict)
    sample_key_limit: int = SAMPLE_KEY_LIMIT

    def add_stats_for_key(
        self,
        key: str,
        key_type: str,
        idle_time: int,
        serialized_length: int,
        ttl: Optional[int],
    ) -> None:
        self.total_instances += 1
        self.total_idle_time += idle_time
        self.total_serialized_length += serialized_length
        if ttl is not None:
            self.total_expirys_set += 1
            if self.max_ttl is None or ttl > self.max_ttl:
                self.max_ttl = ttl

        if self.min_idle_time is None or idle_time < self.min_idle_time:
            self.min_idle_time = idle_time
        if self.max_idle_time is None or idle_time > self.max_idle_time:
            self.max_idle_time = idle_time
        if self.min_serialized_length is None or serialized_length < self.min_serialized_length:
            self.min_serialized_length = serialized_length
        if self.max_serialized_length is None or serialized_length > self.max_serialized_length:
            self.max_serialized_length = serialized_length

        # First keys win; a full sample set is never reshuffled
        if len(self.sample_keys) < self.sample_key_limit:
            self.sample_keys[key] = key_type

    @property
    def average_idle_time(self) -> Optional[int]:
        """Floor of total idle time over instances, None for an empty group."""
        if self.total_instances == 0:
            return None
        return self.total_idle_time // self.total_instances

    @property
    def expiry_ratio(self) -> Optional[float]:
        if self.total_instances == 0:
            return None
        return self.total_expirys_set / self.total_instances
