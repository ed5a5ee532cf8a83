"""
Typo-tolerant matching against protected base domains.

Catches one- or two-character typos of crisis domains (988lifline.org)
without over-matching short or popular unrelated hostnames. Cost is bounded:
length guards reject pathological hostnames before any distance is
computed, length buckets skip most candidates, and the edit-distance loop
aborts as soon as a row can no longer stay within the threshold.
"""

from typing import Optional

from .config import FuzzyMatchConfig
from .domain_index import ProtectedDomainIndex
from .domain_normalizer import base_domain
from .models import FuzzyMatchResult


MIN_LENGTH = 10
MAX_LENGTH = 256
THRESHOLD = 2

# High-traffic domains that must never be treated as a crisis-domain typo
FUZZY_BLOCKLIST = frozenset({
    "google.com", "facebook.com", "youtube.com", "amazon.com", "twitter.com",
    "instagram.com", "tiktok.com", "reddit.com", "wikipedia.org", "linkedin.com",
    "netflix.com", "pinterest.com", "snapchat.com", "discord.com", "twitch.tv",
    "roblox.com", "spotify.com", "microsoft.com", "apple.com", "yahoo.com",
    "whatsapp.com", "x.com", "bing.com", "github.com", "minecraft.net",
})


def edit_distance(a: str, b: str, threshold: Optional[int] = None) -> int:
    """
    Levenshtein distance with unit costs.

    With a threshold, the result is capped at threshold + 1 and computation
    stops as soon as every entry of a DP row exceeds the threshold, so the
    cost stays bounded regardless of input length.
    """
    if a == b:
        return 0

    if threshold is not None and abs(len(a) - len(b)) > threshold:
        return threshold + 1

    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        row_min = i
        for j, char_b in enumerate(b, 1):
            cost = 0 if char_a == char_b else 1
            value = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
            current.append(value)
            if value < row_min:
                row_min = value

        if threshold is not None and row_min > threshold:
            return threshold + 1
        previous = current

    distance = previous[-1]
    if threshold is not None and distance > threshold:
        return threshold + 1
    return distance


class FuzzyMatcher:
    """
    Bounded edit-distance matcher over an index's base domains.

    Inputs are expected to be normalized (lowercase) already; comparison is
    case-sensitive at this layer.
    """

    def __init__(self, config: Optional[FuzzyMatchConfig] = None) -> None:
        self._config = config or FuzzyMatchConfig(
            min_length=MIN_LENGTH,
            max_length=MAX_LENGTH,
            threshold=THRESHOLD,
        )

    @property
    def config(self) -> FuzzyMatchConfig:
        return self._config

    def should_attempt(self, hostname: str) -> bool:
        """Cheap guards applied before any distance is computed."""
        if not self._config.enabled or not hostname:
            return False

        length = len(hostname)
        if length < self._config.min_length or length > self._config.max_length:
            return False

        base = base_domain(hostname)
        if "." not in base:
            return False

        return base not in FUZZY_BLOCKLIST

    def match(
        self,
        hostname: str,
        index: ProtectedDomainIndex,
    ) -> Optional[FuzzyMatchResult]:
        """
        Find the first protected base domain within the threshold.

        First match wins by index input order rather than global minimum;
        a distance of 0 is an exact hit and is not reported here.
        """
        if not self.should_attempt(hostname):
            return None

        candidate = base_domain(hostname)
        threshold = self._config.threshold

        for protected in index.candidates_for_length(len(candidate), threshold):
            distance = edit_distance(candidate, protected, threshold)
            if 0 < distance <= threshold:
                return FuzzyMatchResult(matched_domain=protected, distance=distance)

        return None
