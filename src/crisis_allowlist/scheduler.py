"""
Periodic sync runner.

Wakes up every check interval, syncs when the cached allowlist's TTL has
elapsed, and optionally flushes the fuzzy-match log. Runs until stopped.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .audit_logger import AuditLogger
from .models import SyncResult
from .sync_client import AllowlistSyncClient


class SyncScheduler:
    """Interval loop around AllowlistSyncClient.sync."""

    def __init__(
        self,
        client: AllowlistSyncClient,
        check_interval_seconds: float = 15 * 60.0,
        after_check: Optional[Callable[[], Awaitable[object]]] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            client: Sync client to drive
            check_interval_seconds: Seconds between TTL checks
            after_check: Optional coroutine run after every check (e.g. a log upload)
            logger: Logger for failures of after_check
        """
        if check_interval_seconds <= 0:
            raise ValueError(f"check_interval_seconds must be positive, got {check_interval_seconds}")

        self._client = client
        self._check_interval_seconds = check_interval_seconds
        self._after_check = after_check
        self._logger = logger
        self._running = False
        self._wakeup: Optional[asyncio.Event] = None
        self._runs = 0

    @property
    def runs(self) -> int:
        """Number of completed checks."""
        return self._runs

    async def run_once(self) -> Optional[SyncResult]:
        """
        Sync if the TTL has elapsed.

        Returns:
            The sync result, or None if no sync was due
        """
        result = None
        if await self._client.needs_refresh():
            result = await self._client.sync()

        if self._after_check is not None:
            try:
                await self._after_check()
            except Exception as e:
                # Keep the loop alive; sync must continue regardless
                if self._logger:
                    self._logger.log_error("scheduler", "Post-check task failed", error=e)

        self._runs += 1
        return result

    async def run(
        self,
        stop_event: Optional[asyncio.Event] = None,
        max_iterations: Optional[int] = None,
    ) -> None:
        """
        Run the scheduler loop.

        Args:
            stop_event: Optional event to signal the scheduler to stop
            max_iterations: Stop after this many checks (None = unbounded)
        """
        self._running = True
        self._wakeup = asyncio.Event()
        stop_event = stop_event or asyncio.Event()
        iterations = 0

        try:
            while self._running and not stop_event.is_set():
                await self.run_once()
                iterations += 1

                if max_iterations is not None and iterations >= max_iterations:
                    break

                await self._wait(stop_event)
        finally:
            self._running = False
            self._wakeup = None

    async def _wait(self, stop_event: asyncio.Event) -> None:
        """Sleep for one interval, or until stop_event is set or stop() is called."""
        waiters = [
            asyncio.ensure_future(stop_event.wait()),
            asyncio.ensure_future(self._wakeup.wait()),
        ]
        try:
            await asyncio.wait(
                waiters,
                timeout=self._check_interval_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()

    def stop(self) -> None:
        """
        Stop the loop after the current check, without waiting out the interval.

        Must be called from the event loop running the scheduler.
        """
        self._running = False
        if self._wakeup is not None:
            self._wakeup.set()

    def is_running(self) -> bool:
        return self._running
