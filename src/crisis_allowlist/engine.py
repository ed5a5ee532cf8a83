"""
Protection Engine - wires the oracle, sync client and fuzzy-match log together.

Startup is two-phase so protection never waits for the network:
1. The oracle is built from bundled defaults (synchronous, no I/O)
2. The persisted snapshot is restored, then a sync runs as enrichment

Lookups are answered from the moment the engine is constructed.
"""

from typing import Optional

import httpx

from .audit_logger import AuditLogger, create_logger
from .bundled_defaults import get_bundled_resources
from .config import EngineConfig
from .fuzzy_log import FuzzyMatchQueue, FuzzyMatchUploader
from .fuzzy_matcher import FuzzyMatcher
from .guard import CrisisProtectionGuard
from .models import ProtectionDecision, SyncResult
from .protection_oracle import ProtectionOracle
from .resource_catalog import ResourceCatalog
from .scheduler import SyncScheduler
from .snapshot_store import FileKeyValueStore, KeyValueStore, SnapshotStore
from .sync_client import AllowlistSyncClient


class ProtectionEngine:
    """
    Top-level composition of the crisis allowlist components.

    Owns one ProtectionOracle; hand engine.oracle (or engine.guard) to the
    monitoring code that needs decisions.
    """

    def __init__(
        self,
        config: EngineConfig,
        store: Optional[KeyValueStore] = None,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the engine. Phase one of startup happens here.

        Args:
            config: Engine configuration
            store: Key-value storage for snapshots (defaults to the HMAC file store)
            logger: Optional audit logger (defaults to one built from config.logging)
            transport: Optional httpx transport shared by sync and log upload
        """
        self._config = config
        self._logger = logger or create_logger(config.logging)

        self._fuzzy_queue = FuzzyMatchQueue(config.fuzzy_log.max_queue_size)
        self._oracle = ProtectionOracle(
            matcher=FuzzyMatcher(config.fuzzy),
            sink=self._fuzzy_queue,
            logger=self._logger,
        )

        if store is None:
            store = FileKeyValueStore(
                config.persistence.state_file_path,
                config.persistence.hmac_secret,
            )
        self._snapshots = SnapshotStore(store)

        self._sync_client = AllowlistSyncClient(
            config.sync,
            self._oracle,
            self._snapshots,
            retry_config=config.retry,
            logger=self._logger,
            transport=transport,
        )
        self._uploader = FuzzyMatchUploader(
            self._fuzzy_queue,
            config.fuzzy_log,
            logger=self._logger,
            transport=transport,
        )

        self._guard = CrisisProtectionGuard(self._oracle)
        self._catalog = ResourceCatalog(get_bundled_resources())

    async def __aenter__(self) -> "ProtectionEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def oracle(self) -> ProtectionOracle:
        return self._oracle

    @property
    def guard(self) -> CrisisProtectionGuard:
        return self._guard

    @property
    def catalog(self) -> ResourceCatalog:
        return self._catalog

    @property
    def sync_client(self) -> AllowlistSyncClient:
        return self._sync_client

    @property
    def fuzzy_queue(self) -> FuzzyMatchQueue:
        return self._fuzzy_queue

    @property
    def logger(self) -> AuditLogger:
        return self._logger

    async def start(self, sync: bool = True) -> Optional[SyncResult]:
        """
        Phase two of startup: restore the snapshot, then sync if due.

        Args:
            sync: Whether to contact the server at all

        Returns:
            The sync result, or None if no sync ran
        """
        restored = await self._sync_client.restore_from_snapshot()
        self._logger.info(
            "engine",
            "Engine started",
            {"restored_snapshot": restored, "index": repr(self._oracle.index)},
        )

        if not sync or not await self._sync_client.needs_refresh():
            return None
        return await self._sync_client.sync()

    def is_url_protected(self, url) -> bool:
        return self._oracle.is_url_protected(url)

    def explain(self, url) -> ProtectionDecision:
        return self._oracle.explain(url)

    async def flush_fuzzy_log(self) -> int:
        """Upload queued fuzzy-match entries; returns the number uploaded."""
        return await self._uploader.flush()

    def create_scheduler(self) -> SyncScheduler:
        """Scheduler that syncs on TTL expiry and flushes the fuzzy-match log."""
        return SyncScheduler(
            self._sync_client,
            check_interval_seconds=self._config.sync.check_interval_seconds,
            after_check=self._uploader.flush,
            logger=self._logger,
        )

    async def close(self) -> None:
        await self._sync_client.close()
