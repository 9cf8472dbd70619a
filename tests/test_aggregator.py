# tests/test_aggregator.py

import random

from keyspace_audit.audit.aggregator import GroupStatsAggregator
from keyspace_audit.audit.key_groups import KeyGroupResolver
from keyspace_audit.audit.models import GroupKey, GroupStats
from tests._fakes import record

SESSIONS = GroupKey("session:", "string")


def test_first_record_seeds_min_and_max():
    stats = GroupStats()
    stats.add_stats_for_key("k", "string", idle_time=7, serialized_length=40, ttl=None)

    assert stats.total_instances == 1
    assert stats.min_idle_time == stats.max_idle_time == 7
    assert stats.min_serialized_length == stats.max_serialized_length == 40
    assert stats.max_ttl is None
    assert stats.total_expirys_set == 0


def test_record_accumulates_sums_and_extrema():
    aggregator = GroupStatsAggregator()
    aggregator.record(SESSIONS, "session:1", "string", 5, 100, 60)
    aggregator.record(SESSIONS, "session:2", "string", 10, 200, 120)
    aggregator.record(SESSIONS, "session:3", "string", 15, 300, None)

    stats = aggregator.groups[SESSIONS]
    assert stats.total_instances == 3
    assert stats.total_idle_time == 30
    assert stats.total_serialized_length == 600
    assert stats.total_expirys_set == 2
    assert stats.max_ttl == 120
    assert (stats.min_idle_time, stats.max_idle_time) == (5, 15)
    assert (stats.min_serialized_length, stats.max_serialized_length) == (100, 300)
    assert stats.average_idle_time == 10
    assert stats.expiry_ratio == 2 / 3


def test_max_ttl_ignores_keys_without_expiry():
    aggregator = GroupStatsAggregator()
    aggregator.record(SESSIONS, "a", "string", 0, 1, None)
    assert aggregator.groups[SESSIONS].max_ttl is None
    aggregator.record(SESSIONS, "b", "string", 0, 1, 0)
    assert aggregator.groups[SESSIONS].max_ttl == 0


def test_sample_keys_keep_the_first_ten():
    aggregator = GroupStatsAggregator()
    for index in range(25):
        aggregator.record(SESSIONS, f"session:{index}", "string", 0, 1, None)

    sample_keys = aggregator.groups[SESSIONS].sample_keys
    assert list(sample_keys) == [f"session:{index}" for index in range(10)]
    assert set(sample_keys.values()) == {"string"}


def test_sample_key_limit_is_configurable():
    aggregator = GroupStatsAggregator(sample_key_limit=2)
    for key in ("a", "b", "c"):
        aggregator.record(SESSIONS, key, "string", 0, 1, None)
    assert list(aggregator.groups[SESSIONS].sample_keys) == ["a", "b"]


def test_groups_are_created_lazily_in_insertion_order():
    aggregator = GroupStatsAggregator()
    assert len(aggregator) == 0

    second = GroupKey("queue:", "list")
    aggregator.record_sample(SESSIONS, record("session:1"))
    aggregator.record_sample(second, record("queue:1", key_type="list"))
    aggregator.record_sample(SESSIONS, record("session:2"))

    assert list(aggregator.group_keys()) == [SESSIONS, second]
    assert list(aggregator) == [SESSIONS, second]


def test_invariants_hold_over_random_sequences():
    rng = random.Random(1234)
    prefixes = ["user:", "session:", "cache:item:", "q"]
    types = ["string", "hash"]
    resolver = KeyGroupResolver()
    aggregator = GroupStatsAggregator()
    routed = {}
    seen = {}
    previous_sample_sizes = {}

    for step in range(500):
        key = f"{rng.choice(prefixes)}{rng.randint(0, 10_000)}"
        key_type = rng.choice(types)
        idle = rng.randint(0, 100_000)
        length = rng.randint(0, 5_000)
        ttl = rng.choice([None, rng.randint(0, 3_600)])

        group = resolver.resolve(key, key_type, aggregator.group_keys())
        aggregator.record(group, key, key_type, idle, length, ttl)
        routed[group] = routed.get(group, 0) + 1
        seen.setdefault(group, []).append((idle, length, ttl))

        for known, stats in aggregator.groups.items():
            size = len(stats.sample_keys)
            assert size <= 10
            assert size >= previous_sample_sizes.get(known, 0)
            previous_sample_sizes[known] = size

    assert aggregator.total_instances() == 500
    for group, stats in aggregator.groups.items():
        assert stats.total_instances == routed[group]
        idles = [idle for idle, _, _ in seen[group]]
        lengths = [length for _, length, _ in seen[group]]
        ttls = [ttl for _, _, ttl in seen[group] if ttl is not None]
        assert stats.min_idle_time <= min(idles) and max(idles) <= stats.max_idle_time
        assert stats.min_serialized_length <= min(lengths) and max(lengths) <= stats.max_serialized_length
        assert stats.total_expirys_set == len(ttls)
        assert stats.max_ttl == (max(ttls) if ttls else None)
