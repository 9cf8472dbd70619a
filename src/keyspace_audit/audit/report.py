# keyspace_audit/audit/report.py
"""
Keyspace audit report: human readable, ANSI colored, smallest groups first.
"""

import math
from typing import List, Mapping, Optional

from keyspace_audit.audit.models import GroupKey, GroupStats

YELLOW = "\033[0;33m"
EMPHASIS = "\033[0;1;4m"
RESET = "\033[0m"

SEPARATOR = "=" * 78
NO_DATA = "no data"


def _round2(value: float) -> float:
    """Round half up to 2 decimal places."""
    return math.floor(value * 100 + 0.5) / 100


def format_duration(seconds: int) -> str:
    """90 -> '1 minutes, 30 seconds'; zero units are left out."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    output = []
    if days:
        output.append(f"{days} days")
    if hours:
        output.append(f"{hours} hours")
    if minutes:
        output.append(f"{minutes} minutes")
    if secs:
        output.append(f"{secs} seconds")
    if not output:
        return "0 seconds"
    return ", ".join(output)


def format_bytes(num_bytes: int) -> str:
    """Binary units: 1536 -> '1.5 kB', 512 -> '512 bytes'."""
    kb, b = divmod(int(num_bytes), 1024)
    mb, kb = divmod(kb, 1024)
    gb, mb = divmod(mb, 1024)

    if gb:
        return f"{_round2(gb + mb / 1024.0)} GB"
    if mb:
        return f"{_round2(mb + kb / 1024.0)} MB"
    if kb:
        return f"{_round2(kb + b / 1024.0)} kB"
    return f"{b} bytes"


def make_proportion_percentage(value: float) -> str:
    return f"{_round2(value * 100)}%"


def printable_key(key: str) -> str:
    """Key name safe to print; undecodable bytes show as U+FFFD."""
    return key.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def proportion(part: int, whole: int) -> str:
    """Percentage of ``whole``, or 'no data' when there is nothing to divide by."""
    if not whole:
        return NO_DATA
    return make_proportion_percentage(part / whole)


class ReportRenderer:
    def __init__(self, color: bool = True):
        self.color = color

    def _style(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{RESET}"

    def render(
        self,
        groups: Mapping[GroupKey, GroupStats],
        db_size: int,
        result=None,
    ) -> str:
        """
        Build the report text.

        Args:
            groups: GroupKey -> GroupStats, in classification order
            db_size: Key count reported by the store at the start of the run
            result: Optional AuditResult; adds the sample success line

        Returns:
            str: report lines joined with newlines
        """
        total_sampled_bytes = sum(stats.total_serialized_length for stats in groups.values())
        # sorted() is stable, equal sizes keep classification order
        ordered = sorted(groups.items(), key=lambda item: item[1].total_serialized_length)

        lines = [
            f"DB has {db_size} keys",
            f"Sampled {format_bytes(total_sampled_bytes)} of Redis memory",
        ]
        if result is not None:
            lines.append(self._sample_summary(result))
        lines.append("")
        lines.append(f"Found {len(groups)} key groups")
        lines.append("")

        if not groups:
            lines.append(f"{self._style('No data', EMPHASIS)}: no keys were sampled")
            return "\n".join(lines)

        for group, stats in ordered:
            lines.extend(self._render_group(group, stats, total_sampled_bytes))
        return "\n".join(lines)

    def _sample_summary(self, result) -> str:
        summary = f"{result.succeeded} of {result.sample_size} samples succeeded"
        notes = [f"{reason}: {count}" for reason, count in sorted(result.failed.items())]
        if result.store_drained or result.db_size == 0:
            notes.append("store empty")
        if notes:
            summary += f" ({', '.join(notes)})"
        return summary

    def _render_group(self, group: GroupKey, stats: GroupStats, total_sampled_bytes: int) -> List[str]:
        lines = [
            SEPARATOR,
            f"Key group {self._style(printable_key(group.representative), EMPHASIS)} ({group.key_type})",
            f"Found {stats.total_instances} keys containing {group.key_type}s, like:",
            self._style(", ".join(printable_key(key) for key in stats.sample_keys), YELLOW),
            "",
            f"These keys use {self._style(proportion(stats.total_serialized_length, total_sampled_bytes), EMPHASIS)}"
            f" of the total sampled memory ({format_bytes(stats.total_serialized_length)})",
        ]

        if stats.total_expirys_set == 0:
            lines.append(f"{self._style('None', EMPHASIS)} of these keys expire")
        else:
            lines.append(
                f"{self._style(make_proportion_percentage(stats.expiry_ratio), EMPHASIS)}"
                f" of these keys expire ({stats.total_expirys_set}),"
                f" with maximum ttl of {format_duration(stats.max_ttl or 0)}"
            )

        lines.append(
            f"Average last accessed time: {self._style(self._duration(stats.average_idle_time), EMPHASIS)}"
            f" - (Max: {self._duration(stats.max_idle_time)} Min:{self._duration(stats.min_idle_time)})"
        )
        lines.append("")
        return lines

    @staticmethod
    def _duration(seconds: Optional[int]) -> str:
        if seconds is None:
            return NO_DATA
        return format_duration(seconds)
