"""
Capture guard for activity-monitoring subsystems.

Each monitoring feature asks its own question so call sites read naturally;
every answer is the oracle's protection decision. Suppressing the capture
itself is up to the caller.
"""

from .protection_oracle import ProtectionOracle


class CrisisProtectionGuard:
    """Per-feature view of ProtectionOracle.is_url_protected."""

    def __init__(self, oracle: ProtectionOracle) -> None:
        self._oracle = oracle

    def should_block_monitoring(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def should_block_screenshot(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def should_block_url_logging(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def should_block_time_tracking(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def should_block_notification(self, url) -> bool:
        """Notifications that mention a protected visit must not be sent."""
        return self._oracle.is_url_protected(url)

    def should_block_analytics(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def filter_urls(self, urls) -> list:
        """Drop protected URLs from a batch before it is logged or uploaded."""
        return [url for url in urls if not self._oracle.is_url_protected(url)]
