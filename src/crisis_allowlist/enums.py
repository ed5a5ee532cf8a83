"""
Enumeration types for the crisis allowlist engine.
"""

from enum import Enum


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class ResourceCategory(Enum):
    """Category of a crisis-support resource."""

    SUICIDE = "suicide"
    CRISIS = "crisis"
    ABUSE = "abuse"
    DOMESTIC_VIOLENCE = "domestic_violence"
    CHILD_ABUSE = "child_abuse"
    SEXUAL_ASSAULT = "sexual_assault"
    LGBTQ = "lgbtq"
    MENTAL_HEALTH = "mental_health"
    EATING_DISORDER = "eating_disorder"
    SUBSTANCE_ABUSE = "substance_abuse"
    HUMAN_TRAFFICKING = "human_trafficking"
    RUNAWAY = "runaway"


class MatchMethod(Enum):
    """How a protection decision was reached."""

    EXACT = "exact"
    WILDCARD = "wildcard"
    FUZZY = "fuzzy"
    NONE = "none"


class SyncSource(Enum):
    """Where the currently active allowlist came from."""

    NETWORK = "network"
    CACHE = "cache"
    BUNDLED = "bundled"


class SyncErrorCode(Enum):
    """Error codes for allowlist sync operations."""

    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    TIMEOUT = "timeout"
    PARSE_ERROR = "parse_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    EMPTY_RESOURCES = "empty_resources"


class FetchStatus(Enum):
    """Outcome of a single allowlist request."""

    MODIFIED = "modified"
    NOT_MODIFIED = "not_modified"
    ERROR = "error"
