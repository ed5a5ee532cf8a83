"""
Crisis Allowlist - protection decisions for crisis-support resources.

This package decides whether a navigated URL belongs to a protected set of
crisis-support domains, so that activity monitoring never captures those
visits. Decisions survive URL obfuscation and minor typos, and a sync
protocol keeps the protected set current without ever weakening the
bundled defaults.
"""

__version__ = "0.1.0"
__author__ = "Crisis Allowlist Team"

from crisis_allowlist.exceptions import (
    CrisisAllowlistError,
    ValidationError,
    NetworkError,
    ProtocolError,
    PersistenceError,
    TamperingError,
)
from crisis_allowlist.enums import (
    FetchStatus,
    LogLevel,
    MatchMethod,
    ResourceCategory,
    SyncErrorCode,
    SyncSource,
)
from crisis_allowlist.config import (
    EngineConfig,
    FuzzyLogConfig,
    FuzzyMatchConfig,
    LoggingConfig,
    PersistenceConfig,
    RetryConfig,
    SyncConfig,
)
from crisis_allowlist.models import (
    AllowlistPayload,
    AllowlistSnapshot,
    FuzzyMatchLogEntry,
    FuzzyMatchResult,
    ProtectedDomainRecord,
    ProtectionDecision,
    SyncResult,
    SyncStatus,
)
from crisis_allowlist.domain_normalizer import base_domain, normalize_hostname
from crisis_allowlist.domain_index import ProtectedDomainIndex
from crisis_allowlist.fuzzy_matcher import FuzzyMatcher, edit_distance
from crisis_allowlist.fuzzy_log import FuzzyMatchQueue, FuzzyMatchSink, FuzzyMatchUploader
from crisis_allowlist.bundled_defaults import (
    get_bundled_domains,
    get_bundled_patterns,
    get_bundled_resources,
)
from crisis_allowlist.protection_oracle import ProtectionOracle
from crisis_allowlist.guard import CrisisProtectionGuard
from crisis_allowlist.resource_catalog import ResourceCatalog
from crisis_allowlist.audit_logger import AuditLogger, LogEntry, create_logger
from crisis_allowlist.snapshot_store import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    SnapshotStore,
)
from crisis_allowlist.retry_manager import RetryManager
from crisis_allowlist.sync_client import (
    AllowlistSyncClient,
    flatten_resources,
    is_emergency_version,
    parse_payload,
)
from crisis_allowlist.scheduler import SyncScheduler
from crisis_allowlist.engine import ProtectionEngine
from crisis_allowlist.i18n import get_message
from crisis_allowlist.self_test import SelfTest, SelfTestResult, run_self_test
from crisis_allowlist.cli import main as cli_main

__all__ = [
    "__version__",
    # Exceptions
    "CrisisAllowlistError",
    "ValidationError",
    "NetworkError",
    "ProtocolError",
    "PersistenceError",
    "TamperingError",
    # Enums
    "FetchStatus",
    "LogLevel",
    "MatchMethod",
    "ResourceCategory",
    "SyncErrorCode",
    "SyncSource",
    # Config
    "EngineConfig",
    "FuzzyLogConfig",
    "FuzzyMatchConfig",
    "LoggingConfig",
    "PersistenceConfig",
    "RetryConfig",
    "SyncConfig",
    # Models
    "AllowlistPayload",
    "AllowlistSnapshot",
    "FuzzyMatchLogEntry",
    "FuzzyMatchResult",
    "ProtectedDomainRecord",
    "ProtectionDecision",
    "SyncResult",
    "SyncStatus",
    # Decision path
    "normalize_hostname",
    "base_domain",
    "ProtectedDomainIndex",
    "FuzzyMatcher",
    "edit_distance",
    "ProtectionOracle",
    "CrisisProtectionGuard",
    # Resources
    "get_bundled_domains",
    "get_bundled_patterns",
    "get_bundled_resources",
    "ResourceCatalog",
    # Fuzzy-match log
    "FuzzyMatchQueue",
    "FuzzyMatchSink",
    "FuzzyMatchUploader",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    "create_logger",
    # Persistence
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "SnapshotStore",
    # Sync
    "RetryManager",
    "AllowlistSyncClient",
    "flatten_resources",
    "is_emergency_version",
    "parse_payload",
    "SyncScheduler",
    "ProtectionEngine",
    # I18n
    "get_message",
    # Self-Test
    "SelfTest",
    "SelfTestResult",
    "run_self_test",
    # CLI
    "cli_main",
]
