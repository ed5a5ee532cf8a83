"""
Fuzzy-match log sink.

The oracle reports fuzzy hits through a FuzzyMatchSink. The default sink is
a bounded in-memory queue: posting never blocks and never performs I/O.
Uploading queued entries is a separate async step (FuzzyMatchUploader) so
the decision path stays synchronous.
"""

import time
from abc import abstractmethod
from collections import deque
from typing import Optional, Protocol, runtime_checkable

import httpx

from .audit_logger import AuditLogger
from .config import FuzzyLogConfig
from .models import FuzzyMatchLogEntry, FuzzyMatchResult


@runtime_checkable
class FuzzyMatchSink(Protocol):
    """Receiver of fuzzy-match log entries."""

    @abstractmethod
    def post(self, entry: FuzzyMatchLogEntry) -> None:
        """
        Accept an entry without blocking.

        Implementations may raise; the oracle swallows sink failures.
        """
        ...


def make_log_entry(
    candidate: str,
    result: FuzzyMatchResult,
    timestamp: Optional[int] = None,
) -> FuzzyMatchLogEntry:
    """Build a log entry from a fuzzy hit; timestamp defaults to now (epoch ms)."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return FuzzyMatchLogEntry(
        candidate=candidate,
        matched_domain=result.matched_domain,
        distance=result.distance,
        timestamp=timestamp,
    )


class FuzzyMatchQueue:
    """
    Bounded FIFO of fuzzy-match log entries.

    When full, the oldest entry is dropped to make room.
    """

    def __init__(self, max_size: int = 500) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._entries: deque[FuzzyMatchLogEntry] = deque(maxlen=max_size)
        self._dropped = 0

    def post(self, entry: FuzzyMatchLogEntry) -> None:
        if len(self._entries) == self._entries.maxlen:
            self._dropped += 1
        self._entries.append(entry)

    def drain(self, limit: Optional[int] = None) -> list[FuzzyMatchLogEntry]:
        """Remove and return up to limit entries, oldest first."""
        count = len(self._entries) if limit is None else min(limit, len(self._entries))
        return [self._entries.popleft() for _ in range(count)]

    def requeue(self, entries: list[FuzzyMatchLogEntry]) -> None:
        """Put entries back at the front, e.g. after a failed upload."""
        for entry in reversed(entries):
            if len(self._entries) == self._entries.maxlen:
                # Full: keep the newer entries already queued
                self._dropped += 1
                continue
            self._entries.appendleft(entry)

    @property
    def dropped(self) -> int:
        """Entries discarded because the queue was full."""
        return self._dropped

    def __len__(self) -> int:
        return len(self._entries)


class FuzzyMatchUploader:
    """Uploads queued fuzzy-match entries to a collector in batches."""

    def __init__(
        self,
        queue: FuzzyMatchQueue,
        config: FuzzyLogConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the uploader.

        Args:
            queue: Queue to drain
            config: Upload endpoint, batch size and timeout
            logger: Optional logger for upload failures
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if config.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {config.batch_size}")
        self._queue = queue
        self._config = config
        self._logger = logger
        self._transport = transport

    async def flush(self) -> int:
        """
        Upload all queued entries.

        Stops at the first failed batch and puts it back on the queue.

        Returns:
            Number of entries uploaded
        """
        if not self._config.upload_endpoint:
            return 0

        uploaded = 0
        async with httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            transport=self._transport,
        ) as client:
            while len(self._queue) > 0:
                batch = self._queue.drain(self._config.batch_size)
                if not await self._send_batch(client, batch):
                    self._queue.requeue(batch)
                    break
                uploaded += len(batch)

        return uploaded

    async def _send_batch(
        self,
        client: httpx.AsyncClient,
        batch: list[FuzzyMatchLogEntry],
    ) -> bool:
        try:
            response = await client.post(
                self._config.upload_endpoint,
                json={"entries": [entry.to_dict() for entry in batch]},
            )
        except httpx.HTTPError as e:
            if self._logger:
                self._logger.log_error(
                    "fuzzy_log",
                    "Fuzzy-match log upload failed",
                    error=e,
                    additional_data={"batch_size": len(batch)},
                )
            return False

        if not 200 <= response.status_code < 300:
            if self._logger:
                self._logger.log_error(
                    "fuzzy_log",
                    "Fuzzy-match log upload rejected",
                    response_status_code=response.status_code,
                    additional_data={"batch_size": len(batch)},
                )
            return False

        return True
