"""
Allowlist Sync Client.

Keeps the protected set current from a remote endpoint without ever
weakening default protection:
- conditional GET with If-None-Match on the cached version (304 = unchanged)
- HTTPS enforced unless explicitly allowed
- transient failures retried with exponential backoff
- every rebuilt index is unioned with the bundled defaults
- failures leave the live index untouched and are reported as False
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional
from urllib.parse import urlparse

import httpx

from .audit_logger import AuditLogger
from .config import RetryConfig, SyncConfig
from .enums import FetchStatus, SyncErrorCode, SyncSource
from .exceptions import CrisisAllowlistError, NetworkError, PersistenceError, ProtocolError
from .models import (
    AllowlistPayload,
    AllowlistSnapshot,
    ProtectedDomainRecord,
    SyncResult,
    SyncStatus,
)
from .protection_oracle import ProtectionOracle
from .retry_manager import RetryManager
from .snapshot_store import SnapshotStore


EMERGENCY_MARKER = "-emergency-"
STATUS_PLATFORM = "python"


@dataclass
class FetchError:
    """Error information from an allowlist request."""

    code: SyncErrorCode
    message: str
    http_status_code: Optional[int] = None


@dataclass
class FetchResponse:
    """Complete result of one allowlist request."""

    status: FetchStatus
    http_status_code: int
    payload: Optional[AllowlistPayload]
    error: Optional[FetchError]
    response_time_ms: float = 0.0


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_emergency_version(version: Optional[str]) -> bool:
    """Emergency pushes carry versions like '2.4.1-emergency-abc123'."""
    return isinstance(version, str) and EMERGENCY_MARKER in version


def flatten_resources(resources: Iterable[ProtectedDomainRecord]) -> list[str]:
    """
    Primary domain plus every non-empty alias of each resource, lowercased.

    N resources with M non-empty aliases in total give N + M entries, in
    order; duplicates are kept.
    """
    domains: list[str] = []
    for resource in resources:
        domains.extend(resource.all_domains())
    return domains


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else None


def parse_resource(raw: Any) -> Optional[ProtectedDomainRecord]:
    """
    Parse one resource object; None if it has no usable primary domain.

    Only defined fields are read; anything else in the object is ignored.
    """
    if not isinstance(raw, dict):
        return None

    domain = raw.get("domain")
    if not isinstance(domain, str) or not domain.strip():
        return None

    raw_aliases = raw.get("aliases") or []
    if not isinstance(raw_aliases, list):
        raw_aliases = []
    aliases = tuple(a for a in raw_aliases if isinstance(a, str) and a.strip())

    return ProtectedDomainRecord(
        id=str(raw.get("id") or domain.strip().lower()),
        domain=domain,
        category=str(raw.get("category") or "crisis").lower(),
        name=str(raw.get("name") or domain),
        description=str(raw.get("description") or ""),
        aliases=aliases,
        pattern=_optional_str(raw.get("pattern")),
        phone=_optional_str(raw.get("phone")),
        text=_optional_str(raw.get("text")),
        regional=bool(raw.get("regional", False)),
        region=str(raw.get("region") or "us").lower(),
    )


def parse_payload(data: Any) -> AllowlistPayload:
    """
    Validate and parse an allowlist response body.

    Raises:
        ProtocolError: If the body is not a valid allowlist, or has no
            usable resources (code 'empty_resources')
    """
    if not isinstance(data, dict):
        raise ProtocolError(
            code=SyncErrorCode.PARSE_ERROR.value,
            message="Allowlist body is not a JSON object",
        )

    version = data.get("version")
    if not isinstance(version, str) or not version.strip():
        raise ProtocolError(
            code=SyncErrorCode.PARSE_ERROR.value,
            message="Allowlist body has no version",
        )

    raw_resources = data.get("resources")
    if not isinstance(raw_resources, list):
        raise ProtocolError(
            code=SyncErrorCode.PARSE_ERROR.value,
            message="Allowlist resources are not a list",
            details={"version": version},
        )

    resources = [r for r in map(parse_resource, raw_resources) if r is not None]
    if not resources:
        raise ProtocolError(
            code=SyncErrorCode.EMPTY_RESOURCES.value,
            message="Allowlist contains no usable resources",
            details={"version": version, "received": len(raw_resources)},
        )

    last_updated = data.get("lastUpdated")
    return AllowlistPayload(
        version=version.strip(),
        last_updated=last_updated if isinstance(last_updated, str) else "",
        resources=resources,
    )


class AllowlistSyncClient:
    """
    Async sync client for the remote allowlist.

    The only writer of the oracle's index. Every public method is total:
    failures are logged and reported through the return value.
    """

    def __init__(
        self,
        config: SyncConfig,
        oracle: ProtectionOracle,
        snapshots: SnapshotStore,
        retry_config: Optional[RetryConfig] = None,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """
        Initialize the sync client.

        Args:
            config: Endpoint, timeout and cache lifetimes
            oracle: Oracle whose index is replaced on a successful sync
            snapshots: Persistence for the last good snapshot
            retry_config: Retry behavior (defaults: 2 retries, 1s base delay)
            logger: Logger for sync outcomes
            transport: Optional httpx transport (tests use httpx.MockTransport)
            clock: Returns the current time in epoch milliseconds
        """
        self._config = config
        self._oracle = oracle
        self._snapshots = snapshots
        self._retry = RetryManager(retry_config)
        self._logger = logger
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None
        self._current_version: Optional[str] = None
        self._source = SyncSource.BUNDLED

    async def __aenter__(self) -> "AllowlistSyncClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def current_version(self) -> Optional[str]:
        """Version of the active allowlist; None while running on bundled defaults."""
        return self._current_version

    @property
    def source(self) -> SyncSource:
        return self._source

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _validate_endpoint_url(self, endpoint: str) -> None:
        """
        Raises:
            NetworkError: If the endpoint is not HTTPS and insecure endpoints are not allowed
        """
        parsed = urlparse(endpoint)
        scheme = parsed.scheme.lower()
        if scheme == "https" or (scheme == "http" and self._config.allow_insecure):
            return
        raise NetworkError(
            code=SyncErrorCode.TLS_ERROR.value,
            message="Allowlist endpoint must use HTTPS",
            details={"endpoint": endpoint, "scheme": parsed.scheme},
        )

    async def fetch(self, cached_version: Optional[str] = None) -> FetchResponse:
        """
        Perform a single allowlist request.

        Never raises; every failure is described by the returned FetchResponse.

        Args:
            cached_version: Sent as If-None-Match when given
        """
        start_time = time.perf_counter()
        endpoint = self._config.endpoint

        try:
            self._validate_endpoint_url(endpoint)
        except NetworkError as e:
            return self._error(SyncErrorCode.TLS_ERROR, e.message, start_time)

        headers = {"Accept": "application/json"}
        if cached_version:
            headers["If-None-Match"] = f'"{cached_version}"'

        try:
            response = await self._ensure_client().get(endpoint, headers=headers)
        except httpx.TimeoutException:
            return self._error(
                SyncErrorCode.TIMEOUT,
                f"Allowlist request timed out after {self._config.timeout_seconds}s",
                start_time,
            )
        except httpx.ConnectError as e:
            error_msg = str(e)
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                return self._error(SyncErrorCode.TLS_ERROR, f"TLS connection error: {error_msg}", start_time)
            return self._error(SyncErrorCode.NETWORK_ERROR, f"Connection error: {error_msg}", start_time)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._error(SyncErrorCode.NETWORK_ERROR, f"Request failed: {e}", start_time)

        status_code = response.status_code

        if status_code == 304:
            return FetchResponse(
                status=FetchStatus.NOT_MODIFIED,
                http_status_code=304,
                payload=None,
                error=None,
                response_time_ms=self._elapsed_ms(start_time),
            )

        if status_code == 429:
            return self._error(SyncErrorCode.RATE_LIMITED, "Rate limited by allowlist server", start_time, 429)

        if status_code >= 500:
            return self._error(
                SyncErrorCode.SERVER_ERROR,
                f"Allowlist server error: {status_code}",
                start_time,
                status_code,
            )

        if not 200 <= status_code < 300:
            return self._error(
                SyncErrorCode.CLIENT_ERROR,
                f"Unexpected HTTP status: {status_code}",
                start_time,
                status_code,
            )

        try:
            payload = parse_payload(response.json())
        except ValueError as e:
            return self._error(SyncErrorCode.PARSE_ERROR, f"Malformed allowlist JSON: {e}", start_time, status_code)
        except ProtocolError as e:
            return self._error(SyncErrorCode(e.code), e.message, start_time, status_code)

        return FetchResponse(
            status=FetchStatus.MODIFIED,
            http_status_code=status_code,
            payload=payload,
            error=None,
            response_time_ms=self._elapsed_ms(start_time),
        )

    async def sync_allowlist_from_server(self) -> bool:
        """
        Conditionally fetch the allowlist and publish it if the version changed.

        Returns:
            True only if a new index was published
        """
        return (await self.sync()).changed

    async def force_sync(self) -> SyncResult:
        """Sync without the conditional header."""
        return await self.sync(force=True)

    async def sync(self, force: bool = False) -> SyncResult:
        """
        Run one sync cycle and describe the outcome.

        Args:
            force: Skip If-None-Match so the server always sends the body
        """
        try:
            return await self._sync(force)
        except Exception as e:
            if self._logger:
                self._logger.log_error("sync", "Allowlist sync failed unexpectedly", error=e)
            return SyncResult(
                changed=False,
                source=self._source,
                version=self._current_version,
                is_emergency=is_emergency_version(self._current_version),
                reason="unexpected_error",
            )

    async def _sync(self, force: bool) -> SyncResult:
        cached = await self._load_snapshot()
        cached_version = cached.version if cached else None

        conditional_version = None if force else cached_version
        response, attempts = await self._retry.execute_fetch_with_retry(
            lambda: self.fetch(conditional_version)
        )

        if response.status == FetchStatus.ERROR:
            error = response.error
            if self._logger:
                self._logger.log_error(
                    "sync",
                    "Allowlist sync failed, keeping current index",
                    response_status_code=error.http_status_code if error else None,
                    additional_data={
                        "code": error.code.value if error else None,
                        "detail": error.message if error else None,
                        "attempts": attempts,
                    },
                )
            return self._unchanged(attempts, error.code.value if error else "error")

        if response.status == FetchStatus.NOT_MODIFIED:
            await self._touch_refreshed()
            if self._logger:
                self._logger.info(
                    "sync",
                    "Allowlist not modified",
                    {"version": cached_version, "attempts": attempts},
                )
            return self._unchanged(attempts, "not_modified", SyncSource.NETWORK, cached_version)

        payload = response.payload
        if cached_version is not None and payload.version == cached_version:
            await self._touch_refreshed()
            if self._logger:
                self._logger.info(
                    "sync",
                    "Allowlist version unchanged",
                    {"version": payload.version, "attempts": attempts},
                )
            await self._report_status(payload.version)
            return self._unchanged(attempts, "same_version", SyncSource.NETWORK, cached_version)

        return await self._apply_payload(payload, attempts)

    async def _apply_payload(self, payload: AllowlistPayload, attempts: int) -> SyncResult:
        domains = _dedupe(flatten_resources(payload.resources) + list(self._oracle.bundled_domains))
        patterns = _dedupe(
            [r.pattern.strip().lower() for r in payload.resources if r.pattern]
            + list(self._oracle.bundled_patterns)
        )

        index = self._oracle.build_index(domains, patterns)
        now = self._clock()

        snapshot = AllowlistSnapshot(
            version=payload.version,
            last_updated=now,
            domains=domains,
            patterns=patterns,
        )
        try:
            await self._snapshots.save(snapshot)
            await self._snapshots.touch_refreshed(now)
        except PersistenceError as e:
            # The fetched list is still valid; only the next cold start loses it
            if self._logger:
                self._logger.log_error("sync", "Failed to persist allowlist snapshot", error=e)

        self._oracle.swap_index(index)
        self._current_version = payload.version
        self._source = SyncSource.NETWORK

        emergency = is_emergency_version(payload.version)
        if self._logger:
            self._logger.info(
                "sync",
                "Allowlist updated",
                {
                    "version": payload.version,
                    "resources": len(payload.resources),
                    "domains": len(domains),
                    "emergency": emergency,
                    "attempts": attempts,
                },
            )

        await self._report_status(payload.version)

        return SyncResult(
            changed=True,
            source=SyncSource.NETWORK,
            version=payload.version,
            is_emergency=emergency,
            attempts=attempts,
        )

    async def _report_status(self, version: str) -> None:
        """
        POST the freshly fetched version to the status endpoint, if configured.

        Reporting never affects the sync outcome: failures are logged only.
        """
        endpoint = self._config.status_endpoint
        if not endpoint:
            return

        try:
            self._validate_endpoint_url(endpoint)
            response = await self._ensure_client().post(
                endpoint,
                json={
                    "platform": STATUS_PLATFORM,
                    "version": version,
                    "cacheAge": 0,
                    "isEmergency": is_emergency_version(version),
                },
            )
        except (NetworkError, httpx.HTTPError, httpx.InvalidURL) as e:
            if self._logger:
                self._logger.warn(
                    "sync",
                    "Sync status report failed",
                    {"version": version, "error_type": type(e).__name__},
                )
            return

        if not 200 <= response.status_code < 300 and self._logger:
            self._logger.warn(
                "sync",
                "Sync status report rejected",
                {"version": version, "status_code": response.status_code},
            )

    async def restore_from_snapshot(self) -> bool:
        """
        Publish bundled defaults unioned with the persisted snapshot, without network.

        Returns:
            True if a snapshot was found and published
        """
        snapshot = await self._load_snapshot()
        if snapshot is None:
            return False

        try:
            self._oracle.swap_index(self._oracle.build_index(snapshot.domains, snapshot.patterns))
        except CrisisAllowlistError as e:
            if self._logger:
                self._logger.log_error("sync", "Failed to restore allowlist snapshot", error=e)
            return False

        self._current_version = snapshot.version
        self._source = SyncSource.CACHE
        if self._logger:
            self._logger.info(
                "sync",
                "Allowlist restored from snapshot",
                {"version": snapshot.version, "domains": len(snapshot.domains)},
            )
        return True

    async def needs_refresh(self, now_ms: Optional[int] = None) -> bool:
        """Whether the refresh TTL (1h for emergency versions, else 24h) has elapsed."""
        now = self._clock() if now_ms is None else now_ms
        last = await self._last_refreshed()
        if last is None:
            return True

        version = self._current_version
        if version is None:
            snapshot = await self._load_snapshot()
            version = snapshot.version if snapshot else None

        ttl = self._config.emergency_ttl_ms if is_emergency_version(version) else self._config.normal_ttl_ms
        return now - last >= ttl

    async def get_sync_status(self, now_ms: Optional[int] = None) -> SyncStatus:
        now = self._clock() if now_ms is None else now_ms
        snapshot = await self._load_snapshot()
        last_refreshed = await self._last_refreshed()

        version = self._current_version or (snapshot.version if snapshot else None)
        last_sync_at = snapshot.last_updated if snapshot else None
        reference = last_refreshed if last_refreshed is not None else last_sync_at
        cache_age_ms = max(0, now - reference) if reference is not None else None

        return SyncStatus(
            version=version,
            last_sync_at=last_sync_at,
            last_refreshed_at=last_refreshed,
            cache_age_ms=cache_age_ms,
            is_stale=cache_age_ms is None or cache_age_ms > self._config.staleness_threshold_ms,
            is_emergency=is_emergency_version(version),
        )

    async def _load_snapshot(self) -> Optional[AllowlistSnapshot]:
        """Persisted snapshot; unreadable or tampered storage counts as none."""
        try:
            return await self._snapshots.load()
        except PersistenceError as e:
            if self._logger:
                self._logger.warn(
                    "sync",
                    "Ignoring unreadable allowlist snapshot",
                    {"code": e.code, "error_type": type(e).__name__},
                )
            return None

    async def _last_refreshed(self) -> Optional[int]:
        try:
            return await self._snapshots.last_refreshed()
        except PersistenceError:
            return None

    async def _touch_refreshed(self) -> None:
        try:
            await self._snapshots.touch_refreshed(self._clock())
        except PersistenceError as e:
            if self._logger:
                self._logger.log_error("sync", "Failed to record refresh time", error=e)

    def _unchanged(
        self,
        attempts: int,
        reason: str,
        source: Optional[SyncSource] = None,
        version: Optional[str] = None,
    ) -> SyncResult:
        version = version or self._current_version
        return SyncResult(
            changed=False,
            source=source or self._source,
            version=version,
            is_emergency=is_emergency_version(version),
            attempts=attempts,
            reason=reason,
        )

    def _error(
        self,
        code: SyncErrorCode,
        message: str,
        start_time: float,
        http_status_code: int = 0,
    ) -> FetchResponse:
        return FetchResponse(
            status=FetchStatus.ERROR,
            http_status_code=http_status_code,
            payload=None,
            error=FetchError(
                code=code,
                message=message,
                http_status_code=http_status_code or None,
            ),
            response_time_ms=self._elapsed_ms(start_time),
        )

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000
