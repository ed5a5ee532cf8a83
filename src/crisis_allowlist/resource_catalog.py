"""
Read-only lookups over crisis resource records.

Used by collaborators that need to show a resource (name, phone, text
number) rather than just a protect/allow answer.
"""

from typing import Iterable, Optional

from .domain_index import parse_wildcard_pattern
from .domain_normalizer import normalize_hostname


class ResourceCatalog:
    """Queries over a fixed list of ProtectedDomainRecord."""

    def __init__(self, records: Iterable) -> None:
        self._records = list(records)
        self._by_domain = {}
        for record in self._records:
            for domain in record.all_domains():
                self._by_domain.setdefault(domain, record)
                self._by_domain.setdefault("www." + domain, record)

    def get_by_domain(self, url_or_domain: str):
        """
        Find the record for a URL or hostname.

        Primary domains, aliases and subdomains covered by a record's
        wildcard pattern all resolve to the record.
        """
        hostname = normalize_hostname(url_or_domain)
        if not hostname:
            return None

        record = self._by_domain.get(hostname)
        if record is not None:
            return record

        for candidate in self._records:
            suffix = parse_wildcard_pattern(candidate.pattern)
            if suffix and hostname.endswith("." + suffix):
                return candidate
        return None

    def get_by_category(self, category: str) -> list:
        wanted = (category or "").strip().lower()
        return [r for r in self._records if r.category == wanted]

    def get_by_region(self, region: str) -> list:
        wanted = (region or "").strip().lower()
        return [r for r in self._records if r.region.lower() == wanted]

    def categories(self) -> list[str]:
        return sorted({r.category for r in self._records})

    def regions(self) -> list[str]:
        return sorted({r.region.lower() for r in self._records})

    def search(self, query: Optional[str]) -> list:
        """Case-insensitive substring search over names and descriptions."""
        if not isinstance(query, str) or not query.strip():
            return []
        needle = query.strip().lower()
        return [
            r for r in self._records
            if needle in r.name.lower() or needle in r.description.lower()
        ]

    def count(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list:
        return list(self._records)
