"""
Configuration dataclasses for the crisis allowlist engine.

This module defines the configuration used by the sync client, the fuzzy
matcher, snapshot persistence, fuzzy-match log upload and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


HOUR_MS = 60 * 60 * 1000


@dataclass
class SyncConfig:
    """Allowlist sync endpoint and cache lifetime configuration."""

    endpoint: str
    timeout_seconds: float = 5.0
    normal_ttl_ms: int = 24 * HOUR_MS
    emergency_ttl_ms: int = HOUR_MS
    staleness_threshold_ms: int = 48 * HOUR_MS
    check_interval_seconds: float = 15 * 60.0
    allow_insecure: bool = False
    status_endpoint: Optional[str] = None


@dataclass
class RetryConfig:
    """Retry behavior configuration."""

    max_retries: int = 2
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    retryable_errors: list[str] = field(
        default_factory=lambda: ["timeout", "server_error", "rate_limited", "network_error"]
    )


@dataclass
class FuzzyMatchConfig:
    """Bounds for typo-tolerant matching."""

    enabled: bool = True
    min_length: int = 10
    max_length: int = 256
    threshold: int = 2


@dataclass
class FuzzyLogConfig:
    """Fuzzy-match log queue and upload configuration."""

    upload_endpoint: Optional[str] = None
    max_queue_size: int = 500
    batch_size: int = 50
    timeout_seconds: float = 5.0


@dataclass
class PersistenceConfig:
    """Snapshot storage configuration."""

    state_file_path: Path
    hmac_secret: str


@dataclass
class LoggingConfig:
    """Logging and audit configuration."""

    level: str = "info"
    audit_mode: bool = False
    audit_signing_key: Optional[str] = None
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class EngineConfig:
    """Main configuration combining all sub-configurations."""

    sync: SyncConfig
    retry: RetryConfig
    fuzzy: FuzzyMatchConfig
    fuzzy_log: FuzzyLogConfig
    persistence: PersistenceConfig
    logging: LoggingConfig
    language: str = "en"  # 'de' or 'en'
