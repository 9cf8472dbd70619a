# keyspace_audit/audit/aggregator.py
from typing import Dict, Iterator, KeysView, Optional

from keyspace_audit.audit.models import SAMPLE_KEY_LIMIT, GroupKey, GroupStats, SampledKeyRecord


class GroupStatsAggregator:
    """Owns the group registry and the running GroupStats for each group."""

    def __init__(self, sample_key_limit: int = SAMPLE_KEY_LIMIT):
        self.sample_key_limit = sample_key_limit
        self.groups: Dict[GroupKey, GroupStats] = {}

    def record(
        self,
        group: GroupKey,
        key: str,
        key_type: str,
        idle_time: int,
        serialized_length: int,
        ttl: Optional[int],
    ) -> None:
        stats = self.groups.get(group)
        if stats is None:
            stats = self.groups[group] = GroupStats(sample_key_limit=self.sample_key_limit)
        stats.add_stats_for_key(key, key_type, idle_time, serialized_length, ttl)

    def record_sample(self, group: GroupKey, sample: SampledKeyRecord) -> None:
        self.record(
            group,
            sample.key,
            sample.key_type,
            sample.idle_time,
            sample.serialized_length,
            sample.ttl,
        )

    def group_keys(self) -> KeysView[GroupKey]:
        """Live view of known groups in insertion order (for the resolver)."""
        return self.groups.keys()

    def total_instances(self) -> int:
        return sum(stats.total_instances for stats in self.groups.values())

    def total_serialized_length(self) -> int:
        return sum(stats.total_serialized_length for stats in self.groups.values())

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[GroupKey]:
        return iter(self.groups)
