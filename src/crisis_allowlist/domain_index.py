"""
In-memory index of protected domains.

The index is immutable once built. Rebuilding after a sync produces a new
instance that the oracle publishes with a single reference assignment, so
readers always see one complete index.
"""

from collections import defaultdict
from typing import Iterable, Iterator, Optional

from .domain_normalizer import MULTI_LABEL_TLDS, base_domain, clean_domain


WWW_PREFIX = "www."
WILDCARD_PREFIX = "*."

# Hostnames longer than this are not valid DNS names; skip the suffix walk
MAX_WILDCARD_HOSTNAME_LENGTH = 253


class ProtectedDomainIndex:
    """
    Exact-match set of protected hostnames plus fuzzy-match candidates.

    Holds three views of the same input:
    - the exact set: every entry and its generated 'www.' alias
    - base domains in input order, bucketed by length for fuzzy matching
    - wildcard suffixes from '*.domain' patterns
    """

    def __init__(
        self,
        domains: frozenset[str],
        base_domains: tuple[str, ...],
        wildcard_suffixes: frozenset[str] = frozenset(),
    ) -> None:
        self._domains = domains
        self._base_domains = base_domains
        self._wildcard_suffixes = wildcard_suffixes

        buckets: dict[int, list[tuple[int, str]]] = defaultdict(list)
        for order, domain in enumerate(base_domains):
            buckets[len(domain)].append((order, domain))
        self._buckets = dict(buckets)

    @classmethod
    def build(
        cls,
        raw_domains: Iterable[str],
        patterns: Iterable[str] = (),
    ) -> "ProtectedDomainIndex":
        """
        Build an index from raw domain strings.

        Entries are trimmed and lowercased; empty entries are skipped. Each
        entry not already starting with 'www.' also gets a 'www.' alias.

        Args:
            raw_domains: Primary domains and aliases
            patterns: Optional wildcard patterns such as '*.988lifeline.org'
        """
        domains: set[str] = set()
        bases: list[str] = []
        seen_bases: set[str] = set()

        for raw in raw_domains:
            if not isinstance(raw, str):
                continue
            domain = raw.strip().lower()
            if not domain:
                continue

            domains.add(domain)
            if not domain.startswith(WWW_PREFIX):
                domains.add(WWW_PREFIX + domain)

            base = base_domain(domain)
            if base and base not in seen_bases:
                seen_bases.add(base)
                bases.append(base)

        suffixes = set()
        for pattern in patterns:
            suffix = parse_wildcard_pattern(pattern)
            if suffix:
                suffixes.add(suffix)

        return cls(frozenset(domains), tuple(bases), frozenset(suffixes))

    def exact_match(self, domain: str) -> bool:
        """O(1) membership test against the exact set."""
        return domain in self._domains

    def matches_wildcard(self, domain: str) -> Optional[str]:
        """
        Return the wildcard suffix that covers a proper subdomain, if any.

        'chat.988lifeline.org' is covered by '*.988lifeline.org';
        '988lifeline.org' itself is not (that is an exact match).
        """
        if not self._wildcard_suffixes or not domain:
            return None
        if len(domain) > MAX_WILDCARD_HOSTNAME_LENGTH:
            return None

        position = domain.find(".")
        while position != -1:
            parent = domain[position + 1:]
            if parent in self._wildcard_suffixes:
                return parent
            position = domain.find(".", position + 1)
        return None

    def base_domains(self) -> Iterator[str]:
        """Underlying (non-alias) domains reduced to base domains, in input order."""
        return iter(self._base_domains)

    def candidates_for_length(self, length: int, tolerance: int) -> list[str]:
        """Base domains whose length is within tolerance, in input order."""
        found: list[tuple[int, str]] = []
        for size in range(length - tolerance, length + tolerance + 1):
            found.extend(self._buckets.get(size, ()))
        found.sort()
        return [domain for _, domain in found]

    @property
    def domains(self) -> frozenset[str]:
        return self._domains

    @property
    def wildcard_suffixes(self) -> frozenset[str]:
        return self._wildcard_suffixes

    def __contains__(self, domain: object) -> bool:
        return domain in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def __repr__(self) -> str:
        return (
            f"ProtectedDomainIndex(domains={len(self._domains)}, "
            f"bases={len(self._base_domains)}, wildcards={len(self._wildcard_suffixes)})"
        )


def parse_wildcard_pattern(pattern) -> Optional[str]:
    """'*.example.org' -> 'example.org'; anything else -> None."""
    if not isinstance(pattern, str):
        return None
    pattern = pattern.strip().lower()
    if not pattern.startswith(WILDCARD_PREFIX):
        return None
    suffix = clean_domain(pattern[len(WILDCARD_PREFIX):])
    # A bare public suffix would protect half the internet
    if "." not in suffix or suffix in MULTI_LABEL_TLDS:
        return None
    return suffix
