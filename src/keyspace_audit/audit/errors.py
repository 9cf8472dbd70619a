# keyspace_audit/audit/errors.py
from typing import Optional


class AuditError(Exception):
    """Base class for keyspace audit errors."""


class UsageError(AuditError):
    """Raised when the command line cannot be parsed."""


class ConfigError(AuditError):
    """Raised when the audit configuration holds an invalid value."""


class StoreConnectionError(AuditError):
    """Raised when the store cannot be reached, after retries are spent."""


class StoreCommandError(AuditError):
    """Raised when the store refuses a command every sample needs."""


class KeyMetadataError(AuditError):
    """Raised when metadata for a single sampled key cannot be read."""

    reason = "error"

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"metadata unavailable for key {key!r}")


class KeyVanishedError(KeyMetadataError):
    """The key expired or was deleted between RANDOMKEY and the metadata fetch."""

    reason = "vanished"

    def __init__(self, key: str, message: Optional[str] = None):
        super().__init__(key, message or f"key {key!r} no longer exists")


class MalformedDebugInfoError(KeyMetadataError):
    """DEBUG OBJECT output lacked serializedlength or lru_seconds_idle."""

    reason = "malformed"

    def __init__(self, key: str, raw: object = None):
        self.raw = raw
        super().__init__(key, f"unparseable debug info for key {key!r}: {raw!r}")


class AuditAbortedError(AuditError):
    """Raised by the runner when the abort policy meets a per-key failure."""

    def __init__(self, result, message: str = "audit aborted"):
        self.result = result
        super().__init__(message)
