"""
Data models for the crisis allowlist engine.

This module defines protected-resource records, the persisted allowlist
snapshot, fuzzy-match results and log entries, and sync outcomes.
"""

from dataclasses import dataclass, field
from typing import Optional

from .enums import MatchMethod, SyncSource


@dataclass(frozen=True)
class ProtectedDomainRecord:
    """A single crisis-support resource and the domains it covers."""

    id: str
    domain: str  # Primary domain
    category: str
    name: str
    description: str
    aliases: tuple[str, ...] = ()
    pattern: Optional[str] = None  # e.g. '*.988lifeline.org'
    phone: Optional[str] = None
    text: Optional[str] = None
    regional: bool = False
    region: str = "us"

    def all_domains(self) -> list[str]:
        """Primary domain followed by every non-empty alias, lowercased."""
        domains = [self.domain.strip().lower()]
        domains.extend(alias.strip().lower() for alias in self.aliases if alias and alias.strip())
        return domains


@dataclass
class AllowlistSnapshot:
    """Persisted state of the last successful sync."""

    version: str
    last_updated: int  # epoch milliseconds
    domains: list[str]
    patterns: list[str] = field(default_factory=list)


@dataclass
class AllowlistPayload:
    """Parsed body of a successful allowlist response."""

    version: str
    last_updated: str  # ISO-8601 as sent by the server
    resources: list[ProtectedDomainRecord]


@dataclass(frozen=True)
class FuzzyMatchResult:
    """A near-miss of a protected base domain."""

    matched_domain: str
    distance: int


@dataclass(frozen=True)
class FuzzyMatchLogEntry:
    """
    Privacy-preserving record of a fuzzy hit.

    Carries only the candidate hostname, never a path, query or page content.
    """

    candidate: str
    matched_domain: str
    distance: int
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return {
            "candidate": self.candidate,
            "matchedDomain": self.matched_domain,
            "distance": self.distance,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ProtectionDecision:
    """Diagnostic view of a protection decision."""

    protected: bool
    method: MatchMethod
    matched_domain: Optional[str] = None
    distance: int = 0


@dataclass
class SyncResult:
    """Outcome of a single sync attempt."""

    changed: bool
    source: SyncSource
    version: Optional[str]
    is_emergency: bool = False
    attempts: int = 0
    reason: Optional[str] = None


@dataclass
class SyncStatus:
    """Current sync state for reporting."""

    version: Optional[str]
    last_sync_at: Optional[int]
    last_refreshed_at: Optional[int]
    cache_age_ms: Optional[int]
    is_stale: bool
    is_emergency: bool
