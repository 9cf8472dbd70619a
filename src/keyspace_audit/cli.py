"""
Redis Keyspace Audit CLI

Usage:
  redis-audit <host> <port> <dbnum> <sample_size>

Samples <sample_size> random keys from database <dbnum>, groups them by
inferred key pattern and prints memory, expiry and idle-time stats per group.

Exit codes:
  0  every sample succeeded (or the store holds no keys)
  1  usage error
  2  the store could not be reached or refused a required command
  3  partial data: some draws failed or the store emptied mid-run
  4  aborted by the 'abort' metadata failure policy
  5  invalid packaged configuration
"""

import argparse
import logging
import sys
from typing import List, Optional

from keyspace_audit.audit.aggregator import GroupStatsAggregator
from keyspace_audit.audit.errors import (
    AuditAbortedError,
    ConfigError,
    StoreCommandError,
    StoreConnectionError,
    UsageError,
)
from keyspace_audit.audit.key_groups import KeyGroupResolver
from keyspace_audit.audit.report import ReportRenderer
from keyspace_audit.audit.runner import AuditRunner
from keyspace_audit.config_utils import AuditSettings, load_settings
from keyspace_audit.redis_clients import RedisKeyMetadataSource, connect_redis

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_STORE_ERROR = 2
EXIT_PARTIAL = 3
EXIT_ABORTED = 4
EXIT_CONFIG = 5

USAGE = "%(prog)s <host> <port> <dbnum> <sample_size>"


class AuditArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> AuditArgumentParser:
    parser = AuditArgumentParser(
        prog="redis-audit",
        usage=USAGE,
        add_help=False,
        description="Sample a Redis keyspace and report memory usage per inferred key group",
    )
    parser.add_argument("host", help="Redis host")
    parser.add_argument("port", type=int, help="Redis port")
    parser.add_argument("dbnum", type=int, help="Redis database index")
    parser.add_argument("sample_size", type=int, help="Number of random keys to draw")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if not 0 < args.port < 65536:
        raise UsageError(f"port must be between 1 and 65535 (got {args.port})")
    if args.dbnum < 0:
        raise UsageError(f"dbnum must not be negative (got {args.dbnum})")
    if args.sample_size < 0:
        raise UsageError(f"sample_size must not be negative (got {args.sample_size})")
    return args


def configure_logging(settings: AuditSettings) -> None:
    logging.basicConfig(
        level=settings.logging.level,
        format=settings.logging.format,
        stream=sys.stderr,
    )


def run_audit(args: argparse.Namespace, settings: AuditSettings) -> int:
    print(f"Auditing {args.host}:{args.port} db:{args.dbnum} sampling {args.sample_size} keys")

    try:
        client = connect_redis(args.host, args.port, args.dbnum, settings.redis)
    except StoreConnectionError as exc:
        print(f"✗ {exc}")
        return EXIT_STORE_ERROR

    renderer = ReportRenderer()
    try:
        source = RedisKeyMetadataSource(
            client,
            max_retries=settings.redis.max_retries,
            retry_backoff=settings.redis.retry_backoff_seconds,
            debug_fallback=settings.audit.debug_fallback,
        )
        runner = AuditRunner(
            source,
            resolver=KeyGroupResolver(settings.key_group_rules),
            aggregator=GroupStatsAggregator(settings.audit.sample_key_limit),
            failure_policy=settings.audit.metadata_failure_policy,
            progress_interval=settings.audit.progress_interval,
        )
        result = runner.run(args.sample_size)
    except AuditAbortedError as exc:
        partial = exc.result
        print(renderer.render(partial.aggregator.groups, partial.db_size, partial))
        print(f"✗ {exc}")
        return EXIT_ABORTED
    except (StoreConnectionError, StoreCommandError) as exc:
        print(f"✗ {exc}")
        return EXIT_STORE_ERROR
    finally:
        client.close()

    print(renderer.render(result.aggregator.groups, result.db_size, result))
    if result.complete or result.empty_store:
        return EXIT_OK
    return EXIT_PARTIAL


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except UsageError as exc:
        print(build_parser().format_usage().rstrip())
        print(f"error: {exc}")
        return EXIT_USAGE

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"✗ Invalid audit configuration: {exc}")
        return EXIT_CONFIG

    configure_logging(settings)
    return run_audit(args, settings)


if __name__ == '__main__':
    sys.exit(main())
