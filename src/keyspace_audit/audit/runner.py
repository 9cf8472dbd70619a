# keyspace_audit/audit/runner.py
"""
Audit Runner
============

Draws ``sample_size`` random keys, reads each key's metadata, resolves its
group and records it. Per-key failures follow ``MetadataFailurePolicy``:
SKIP counts the failure and keeps going, ABORT raises ``AuditAbortedError``
carrying the partial result. Connectivity failures always end the run.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from keyspace_audit.audit.aggregator import GroupStatsAggregator
from keyspace_audit.audit.errors import AuditAbortedError, KeyMetadataError
from keyspace_audit.audit.key_groups import KeyGroupResolver
from keyspace_audit.config_utils import MetadataFailurePolicy
from keyspace_audit.redis_clients.metadata_source import KeyMetadataSource

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    sample_size: int
    aggregator: GroupStatsAggregator
    db_size: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: Counter = field(default_factory=Counter)
    store_drained: bool = False

    @property
    def failed_total(self) -> int:
        return sum(self.failed.values())

    @property
    def empty_store(self) -> bool:
        return self.db_size == 0

    @property
    def complete(self) -> bool:
        return self.succeeded == self.sample_size


class AuditRunner:
    def __init__(
        self,
        source: KeyMetadataSource,
        resolver: Optional[KeyGroupResolver] = None,
        aggregator: Optional[GroupStatsAggregator] = None,
        failure_policy: MetadataFailurePolicy = MetadataFailurePolicy.SKIP,
        progress_interval: int = 0,
    ):
        self.source = source
        self.resolver = resolver or KeyGroupResolver()
        self.aggregator = aggregator if aggregator is not None else GroupStatsAggregator()
        self.failure_policy = failure_policy
        self.progress_interval = progress_interval

    def run(self, sample_size: int) -> AuditResult:
        """
        Sample the store ``sample_size`` times.

        Raises:
            AuditAbortedError: a key failed under the ABORT policy
            StoreConnectionError: the store stopped answering
        """
        result = AuditResult(sample_size=sample_size, aggregator=self.aggregator)
        result.db_size = self.source.key_count()
        if result.db_size == 0:
            logger.warning("Store reports 0 keys, nothing to sample")
            return result

        for _ in range(sample_size):
            key = self.source.random_key()
            if key is None:
                logger.warning(
                    f"RANDOMKEY returned nothing after {result.attempted} draws, store is empty"
                )
                result.store_drained = True
                break

            result.attempted += 1
            try:
                sample = self.source.fetch(key)
            except KeyMetadataError as exc:
                result.failed[exc.reason] += 1
                if self.failure_policy is MetadataFailurePolicy.ABORT:
                    logger.error(f"Aborting audit on key {key!r}: {exc}")
                    raise AuditAbortedError(result, f"audit aborted on key {key!r}: {exc}") from exc
                logger.warning(f"Skipping key {key!r}: {exc}")
            else:
                group = self.resolver.resolve(sample.key, sample.key_type, self.aggregator.group_keys())
                self.aggregator.record_sample(group, sample)
                result.succeeded += 1

            if self.progress_interval and result.attempted % self.progress_interval == 0:
                logger.info(
                    f"Sampled {result.attempted}/{sample_size} keys into {len(self.aggregator)} groups"
                )

        return result
