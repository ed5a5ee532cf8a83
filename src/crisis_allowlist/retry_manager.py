"""
Retry Manager for allowlist sync requests.

Retries transient failures (timeouts, connection errors, 429, 5xx) with
exponential backoff. Client errors, TLS failures and malformed bodies are
final: repeating the same request cannot fix them.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from .config import RetryConfig
from .enums import FetchStatus, SyncErrorCode

if TYPE_CHECKING:
    from .sync_client import FetchResponse


class RetryManager:
    """Exponential backoff around a single async fetch."""

    def __init__(self, config: Optional[RetryConfig] = None) -> None:
        """
        Initialize the retry manager.

        Args:
            config: Retry configuration (defaults: 2 retries, 1s base delay)
        """
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        """
        Wait time before retry number attempt + 1.

        delay(n) = base_delay * 2^n, capped at max_delay.
        """
        delay = self._config.base_delay_seconds * (2 ** attempt)
        return min(delay, self._config.max_delay_seconds)

    def is_retryable_error(self, error_code) -> bool:
        """Check an error code (string or SyncErrorCode) against the retryable set."""
        code = error_code.value if isinstance(error_code, SyncErrorCode) else str(error_code)
        return code in self._config.retryable_errors

    def should_retry(self, response: FetchResponse) -> bool:
        if response.status != FetchStatus.ERROR or response.error is None:
            return False
        return self.is_retryable_error(response.error.code)

    async def execute_fetch_with_retry(
        self,
        operation: Callable[[], Awaitable[FetchResponse]],
    ) -> tuple[FetchResponse, int]:
        """
        Run a fetch until it succeeds, fails finally, or retries run out.

        Args:
            operation: Async fetch that reports failures in its response

        Returns:
            Tuple of (final FetchResponse, number of attempts)
        """
        max_attempts = self._config.max_retries + 1
        attempts = 0

        while True:
            response = await operation()
            attempts += 1

            if not self.should_retry(response) or attempts >= max_attempts:
                return response, attempts

            await asyncio.sleep(self.calculate_delay(attempts - 1))

