# keyspace_audit/audit/key_groups.py
"""
Key Group Resolver
==================

Decides which group a sampled key belongs to.

Explicit ``KeyGroupRule`` patterns are checked first, in configured order.
Otherwise the key is stripped of digits (numeric segments are nearly always
ids) and compared against every known group: the group sharing the longest
prefix wins, provided the prefix covers at least a third of the stripped key
and the Redis type matches. A key that matches nothing starts a new group.

Grouping depends on what was seen before, so the same key can land in a
different group when keys arrive in a different order. The registry of known
groups is always passed in by the caller.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from keyspace_audit.audit.errors import ConfigError
from keyspace_audit.audit.models import GroupKey

logger = logging.getLogger(__name__)

_DIGITS = str.maketrans("", "", "0123456789")


@dataclass(frozen=True)
class KeyGroupRule:
    """Regex that forces matching keys into one group."""
    pattern: re.Pattern
    name: Optional[str] = None

    @classmethod
    def compile(cls, pattern: str, name: Optional[str] = None) -> "KeyGroupRule":
        try:
            return cls(re.compile(pattern), name)
        except re.error as exc:
            raise ConfigError(f"invalid key group pattern {pattern!r}: {exc}") from exc

    @property
    def identifier(self) -> str:
        return self.name or self.pattern.pattern

    def matches(self, key: str) -> bool:
        return self.pattern.search(key) is not None


def normalize_key(key: str) -> str:
    """Remove every decimal digit from ``key``."""
    return key.translate(_DIGITS)


def common_prefix_length(left: str, right: str) -> int:
    length = 0
    for a, b in zip(left, right):
        if a != b:
            break
        length += 1
    return length


class KeyGroupResolver:
    def __init__(self, rules: Optional[Sequence[KeyGroupRule]] = None):
        self.rules: List[KeyGroupRule] = list(rules or [])

    def resolve(self, key: str, key_type: str, existing_groups: Iterable[GroupKey]) -> GroupKey:
        """
        Map ``(key, key_type)`` to a GroupKey.

        Args:
            key: Sampled key name
            key_type: Redis type of the key (string, hash, ...)
            existing_groups: Groups classified so far, in insertion order

        Returns:
            GroupKey: an existing group when one matches well enough,
            otherwise a new one built from the digit-stripped key
        """
        for rule in self.rules:
            if rule.matches(key):
                return GroupKey(rule.identifier, key_type)

        normalized = normalize_key(key)
        # Minimum length of match is 1/3 of the stripped key
        threshold = len(normalized) // 3

        best_group: Optional[GroupKey] = None
        best_length = -1
        for group in existing_groups:
            if group.key_type != key_type:
                continue
            length = common_prefix_length(normalized, group.representative)
            if length >= threshold and length > best_length:
                best_group = group
                best_length = length

        if best_group is not None:
            return best_group

        logger.debug(f"New key group {normalized!r} ({key_type}) from key {key!r}")
        return GroupKey(normalized, key_type)
