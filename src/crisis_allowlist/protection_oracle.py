"""
Protection Oracle - decides whether a navigated URL is a protected crisis resource.

The oracle follows the principle "when in doubt, protect": every lookup is
total, never raises and never performs I/O. A URL is protected when its
hostname:
1. Is in the exact-match set (primary domain, alias, or their www. variant)
2. Is a subdomain of a wildcard pattern ('*.988lifeline.org')
3. Is within a small edit distance of a protected base domain

If anything on that path fails, bundled-default hostnames are still
answered as protected.
"""

from typing import Iterable, Optional

from .audit_logger import AuditLogger
from .bundled_defaults import get_bundled_domains, get_bundled_patterns
from .domain_index import WWW_PREFIX, ProtectedDomainIndex, parse_wildcard_pattern
from .domain_normalizer import normalize_hostname
from .enums import MatchMethod
from .exceptions import ValidationError
from .fuzzy_log import FuzzyMatchSink, make_log_entry
from .fuzzy_matcher import FuzzyMatcher
from .models import FuzzyMatchResult, ProtectionDecision


NOT_PROTECTED = ProtectionDecision(protected=False, method=MatchMethod.NONE)


class ProtectionOracle:
    """
    Owner of the live ProtectedDomainIndex and the decision path over it.

    The index reference is replaced by a single attribute assignment
    (swap_index), so lookups need no lock and always see a complete index.
    """

    def __init__(
        self,
        bundled_domains: Optional[Iterable[str]] = None,
        bundled_patterns: Optional[Iterable[str]] = None,
        matcher: Optional[FuzzyMatcher] = None,
        sink: Optional[FuzzyMatchSink] = None,
        logger: Optional[AuditLogger] = None,
        bootstrap: bool = True,
    ) -> None:
        """
        Initialize the oracle.

        Args:
            bundled_domains: Always-protected domains (defaults to the bundled set)
            bundled_patterns: Always-protected wildcard patterns
            matcher: Fuzzy matcher (defaults to FuzzyMatcher())
            sink: Receiver of fuzzy-match log entries
            logger: Logger for internal failures; never receives hostnames
            bootstrap: Build the index now; False defers it to the first lookup
        """
        if bundled_domains is None:
            bundled_domains = get_bundled_domains()
        if bundled_patterns is None:
            bundled_patterns = get_bundled_patterns()

        self._bundled_domains = tuple(
            d.strip().lower() for d in bundled_domains if isinstance(d, str) and d.strip()
        )
        self._bundled_patterns = tuple(p for p in bundled_patterns if isinstance(p, str))
        self._matcher = matcher or FuzzyMatcher()
        self._sink = sink
        self._logger = logger

        self._fallback_domains = frozenset(
            self._bundled_domains
            + tuple(WWW_PREFIX + d for d in self._bundled_domains if not d.startswith(WWW_PREFIX))
        )
        self._fallback_suffixes = tuple(
            suffix for suffix in map(parse_wildcard_pattern, self._bundled_patterns) if suffix
        )

        self._index: Optional[ProtectedDomainIndex] = None
        if bootstrap:
            self._index = self._build_bundled_index()

    @property
    def index(self) -> Optional[ProtectedDomainIndex]:
        """The live index, or None before the first lookup when not bootstrapped."""
        return self._index

    @property
    def bundled_domains(self) -> tuple[str, ...]:
        return self._bundled_domains

    @property
    def bundled_patterns(self) -> tuple[str, ...]:
        return self._bundled_patterns

    @property
    def matcher(self) -> FuzzyMatcher:
        return self._matcher

    def is_url_protected(self, url) -> bool:
        """
        Decide whether a URL belongs to the protected set.

        Total: malformed or non-string input is simply not protected.
        """
        return self._decide(url, report=True).protected

    def explain(self, url) -> ProtectionDecision:
        """
        Same decision as is_url_protected, with how it was reached.

        Fuzzy hits found here are not posted to the sink.
        """
        return self._decide(url, report=False)

    def swap_index(self, index: ProtectedDomainIndex) -> None:
        """
        Publish a rebuilt index.

        Raises:
            ValidationError: If the index is not a ProtectedDomainIndex or is empty
        """
        if not isinstance(index, ProtectedDomainIndex) or len(index) == 0:
            raise ValidationError(
                code="invalid_index",
                message="Refusing to publish an empty or invalid index",
                details={"type": type(index).__name__},
            )
        self._index = index

    def build_index(
        self,
        domains: Iterable[str],
        patterns: Iterable[str] = (),
    ) -> ProtectedDomainIndex:
        """Build an index of the given domains and patterns unioned with the bundled set."""
        return ProtectedDomainIndex.build(
            list(self._bundled_domains) + list(domains),
            list(self._bundled_patterns) + list(patterns),
        )

    def _build_bundled_index(self) -> ProtectedDomainIndex:
        return ProtectedDomainIndex.build(self._bundled_domains, self._bundled_patterns)

    def _ensure_index(self) -> ProtectedDomainIndex:
        index = self._index
        if index is None:
            index = self._build_bundled_index()
            self._index = index
        return index

    def _decide(self, url, report: bool) -> ProtectionDecision:
        hostname: Optional[str] = None
        try:
            hostname = normalize_hostname(url)
            if not hostname:
                return NOT_PROTECTED

            # One read of the reference: a concurrent swap cannot mix indexes
            index = self._ensure_index()

            if index.exact_match(hostname):
                return ProtectionDecision(
                    protected=True, method=MatchMethod.EXACT, matched_domain=hostname
                )

            suffix = index.matches_wildcard(hostname)
            if suffix is not None:
                return ProtectionDecision(
                    protected=True, method=MatchMethod.WILDCARD, matched_domain=suffix
                )

            result = self._matcher.match(hostname, index)
            if result is None:
                return NOT_PROTECTED

            if report:
                self._report_fuzzy_match(hostname, result)
            return ProtectionDecision(
                protected=True,
                method=MatchMethod.FUZZY,
                matched_domain=result.matched_domain,
                distance=result.distance,
            )
        except Exception as e:
            if self._logger:
                self._logger.log_error(
                    "oracle",
                    "Protection check failed, falling back to bundled defaults",
                    additional_data={"error_type": type(e).__name__},
                )
            return self._fallback_decision(hostname)

    def _fallback_decision(self, hostname: Optional[str]) -> ProtectionDecision:
        if not isinstance(hostname, str) or not hostname:
            return NOT_PROTECTED
        if hostname in self._fallback_domains:
            return ProtectionDecision(
                protected=True, method=MatchMethod.EXACT, matched_domain=hostname
            )
        for suffix in self._fallback_suffixes:
            if hostname.endswith("." + suffix):
                return ProtectionDecision(
                    protected=True, method=MatchMethod.WILDCARD, matched_domain=suffix
                )
        return NOT_PROTECTED

    def _report_fuzzy_match(self, hostname: str, result: FuzzyMatchResult) -> None:
        if self._sink is None:
            return
        try:
            self._sink.post(make_log_entry(hostname, result))
        except Exception as e:
            if self._logger:
                self._logger.warn(
                    "oracle",
                    "Fuzzy-match sink rejected an entry",
                    {"error_type": type(e).__name__},
                )
