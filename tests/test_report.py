# tests/test_report.py

import pytest

from keyspace_audit.audit.aggregator import GroupStatsAggregator
from keyspace_audit.audit.models import GroupKey
from keyspace_audit.audit.report import (
    EMPHASIS,
    RESET,
    YELLOW,
    ReportRenderer,
    format_bytes,
    format_duration,
    make_proportion_percentage,
    printable_key,
    proportion,
)


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 bytes"),
        (512, "512 bytes"),
        (1023, "1023 bytes"),
        (1024, "1.0 kB"),
        (1536, "1.5 kB"),
        (int(1.25 * 1024 ** 2), "1.25 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
    ],
)
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0 seconds"),
        (59, "59 seconds"),
        (90, "1 minutes, 30 seconds"),
        (3600, "1 hours"),
        (86400 + 3661, "1 days, 1 hours, 1 minutes, 1 seconds"),
        (2 * 86400 + 5, "2 days, 5 seconds"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_percentages_round_to_two_places():
    assert make_proportion_percentage(0.5) == "50.0%"
    assert make_proportion_percentage(1 / 3) == "33.33%"
    assert make_proportion_percentage(2 / 3) == "66.67%"
    assert proportion(1, 0) == "no data"


def _aggregator():
    aggregator = GroupStatsAggregator()
    big = GroupKey("blob:", "string")
    small = GroupKey("flag:", "string")
    aggregator.record(big, "blob:1", "string", 100, 3000, None)
    aggregator.record(small, "flag:1", "string", 30, 1000, 90)
    aggregator.record(small, "flag:2", "string", 90, 0, None)
    return aggregator


def test_groups_are_listed_smallest_first():
    text = ReportRenderer(color=False).render(_aggregator().groups, db_size=42)

    assert text.index("Key group flag:") < text.index("Key group blob:")
    assert "DB has 42 keys" in text
    assert "Sampled 3.91 kB of Redis memory" in text
    assert "Found 2 key groups" in text


def test_group_block_contents():
    text = ReportRenderer(color=False).render(_aggregator().groups, db_size=3)

    assert "Found 2 keys containing strings, like:" in text
    assert "flag:1, flag:2" in text
    assert "These keys use 25.0% of the total sampled memory (1000 bytes)" in text
    assert "50.0% of these keys expire (1), with maximum ttl of 1 minutes, 30 seconds" in text
    assert "Average last accessed time: 1 minutes - (Max: 1 minutes, 30 seconds Min:30 seconds)" in text
    assert "None of these keys expire" in text


def test_colors_wrap_samples_and_headline_figures():
    text = ReportRenderer().render(_aggregator().groups, db_size=3)

    assert f"{YELLOW}blob:1{RESET}" in text
    assert f"{EMPHASIS}75.0%{RESET}" in text
    assert "\033[" not in ReportRenderer(color=False).render(_aggregator().groups, db_size=3)


def test_equal_sizes_keep_classification_order():
    aggregator = GroupStatsAggregator()
    for name in ("c:", "a:", "b:"):
        aggregator.record(GroupKey(name, "set"), f"{name}1", "set", 0, 10, None)

    text = ReportRenderer(color=False).render(aggregator.groups, db_size=3)
    positions = [text.index(f"Key group {name} ") for name in ("c:", "a:", "b:")]
    assert positions == sorted(positions)


def test_zero_bytes_sampled_reports_no_data_instead_of_dividing():
    aggregator = GroupStatsAggregator()
    aggregator.record(GroupKey("empty:", "string"), "empty:1", "string", 0, 0, None)

    text = ReportRenderer(color=False).render(aggregator.groups, db_size=1)
    assert "These keys use no data of the total sampled memory (0 bytes)" in text


def test_no_groups_renders_no_data():
    text = ReportRenderer(color=False).render({}, db_size=0)

    assert "Found 0 key groups" in text
    assert "No data: no keys were sampled" in text
    assert "=====" not in text


def test_undecodable_key_names_render_with_replacement_characters():
    key = b"\xff\xfeblob:1".decode("utf-8", "surrogateescape")
    aggregator = GroupStatsAggregator()
    aggregator.record(GroupKey(key[:-1], "string"), key, "string", 0, 10, None)

    text = ReportRenderer(color=False).render(aggregator.groups, db_size=1)

    assert printable_key(key) == "\ufffd\ufffdblob:1"
    assert "Key group \ufffd\ufffdblob: (string)" in text
    assert "\ufffd\ufffdblob:1" in text
    assert text.encode("utf-8")
