"""
Property-based tests for the Allowlist Sync Client.

Uses Hypothesis and httpx.MockTransport to check conditional fetches,
retry behavior, persistence and the guarantee that a sync never removes
bundled protection.
"""

import asyncio
import json
from io import StringIO

import httpx
from hypothesis import given, settings
from hypothesis import strategies as st

from crisis_allowlist.audit_logger import AuditLogger
from crisis_allowlist.bundled_defaults import get_bundled_domains
from crisis_allowlist.config import HOUR_MS, RetryConfig, SyncConfig
from crisis_allowlist.enums import FetchStatus, SyncErrorCode, SyncSource
from crisis_allowlist.exceptions import PersistenceError, ProtocolError
from crisis_allowlist.models import AllowlistSnapshot, ProtectedDomainRecord
from crisis_allowlist.protection_oracle import ProtectionOracle
from crisis_allowlist.snapshot_store import (
    LAST_REFRESHED_KEY,
    SNAPSHOT_KEY,
    InMemoryKeyValueStore,
    SnapshotStore,
)
from crisis_allowlist.sync_client import (
    AllowlistSyncClient,
    flatten_resources,
    is_emergency_version,
    parse_payload,
)


ENDPOINT = "https://allowlist.test/v1/crisis-allowlist"
STATUS_ENDPOINT = "https://allowlist.test/v1/sync-status"
START_MS = 1_790_000_000_000
BUNDLED_DOMAINS = get_bundled_domains()


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStore(InMemoryKeyValueStore):
    """Store whose writes always fail."""

    async def set(self, key, value):
        raise PersistenceError(code="io_error", message="disk full")


def make_payload(version: str, domains: list, patterns: dict = None) -> dict:
    patterns = patterns or {}
    return {
        "version": version,
        "lastUpdated": "2026-10-18T00:00:00Z",
        "resources": [
            {
                "id": f"r{i}",
                "domain": domain,
                "category": "crisis",
                "name": domain,
                "description": "",
                "pattern": patterns.get(domain),
            }
            for i, domain in enumerate(domains)
        ],
    }


def make_client(
    handler,
    store=None,
    clock=None,
    endpoint=ENDPOINT,
    allow_insecure=False,
    logger=None,
    status_endpoint=None,
):
    """Sync client wired to a MockTransport with near-zero retry delays."""
    oracle = ProtectionOracle()
    store = store if store is not None else InMemoryKeyValueStore()
    client = AllowlistSyncClient(
        SyncConfig(endpoint=endpoint, allow_insecure=allow_insecure, status_endpoint=status_endpoint),
        oracle,
        SnapshotStore(store),
        retry_config=RetryConfig(max_retries=2, base_delay_seconds=0.001, max_delay_seconds=0.01),
        logger=logger,
        transport=httpx.MockTransport(handler),
        clock=clock or FakeClock(),
    )
    return client, oracle, store


class RecordingServer:
    """MockTransport handler serving a versioned allowlist with ETag support."""

    def __init__(self, payload: dict, honor_etag: bool = True):
        self.payload = payload
        self.honor_etag = honor_etag
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        etag = f'"{self.payload["version"]}"'
        if self.honor_etag and request.headers.get("if-none-match") == etag:
            return httpx.Response(304)
        return httpx.Response(200, json=self.payload, headers={"ETag": etag})


def sequence_handler(responses: list):
    """Handler returning (or raising) the given responses in order."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        item = responses[min(len(calls), len(responses) - 1)]
        calls.append(request)
        if isinstance(item, Exception):
            raise item
        return item

    handler.calls = calls
    return handler


class TestConditionalSyncProperty:
    """
    Property-based tests for conditional fetches and idempotence.

    **Feature: crisis-allowlist, Property 18: Unchanged versions never rebuild or persist**
    """

    def test_first_sync_publishes_and_persists(self):
        server = RecordingServer(make_payload("2.0.0", ["new-crisis-resource.org"]))
        client, oracle, store = make_client(server)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert result.version == "2.0.0"
        assert result.source == SyncSource.NETWORK
        assert client.current_version == "2.0.0"
        assert oracle.is_url_protected("https://www.new-crisis-resource.org/")
        assert store.write_count(SNAPSHOT_KEY) == 1
        assert "if-none-match" not in server.requests[0].headers

    def test_second_sync_sends_etag_and_gets_304(self):
        server = RecordingServer(make_payload("2.0.0", ["new-crisis-resource.org"]))
        clock = FakeClock()
        client, oracle, store = make_client(server, clock=clock)

        async def run():
            async with client:
                first = await client.sync_allowlist_from_server()
                index_after_first = oracle.index
                clock.advance(5000)
                second = await client.sync_allowlist_from_server()
                return first, index_after_first, second

        first, index_after_first, second = asyncio.run(run())

        assert first is True
        assert second is False
        assert server.requests[1].headers["if-none-match"] == '"2.0.0"'
        assert oracle.index is index_after_first
        assert store.write_count(SNAPSHOT_KEY) == 1
        assert store.data[LAST_REFRESHED_KEY] == str(START_MS + 5000)

    def test_same_version_body_is_not_rebuilt(self):
        server = RecordingServer(make_payload("2.0.0", ["new-crisis-resource.org"]), honor_etag=False)
        client, oracle, store = make_client(server)

        async def run():
            async with client:
                await client.sync()
                index = oracle.index
                return index, await client.sync()

        index, result = asyncio.run(run())

        assert not result.changed
        assert result.reason == "same_version"
        assert oracle.index is index
        assert store.write_count(SNAPSHOT_KEY) == 1

    def test_force_sync_skips_conditional_header(self):
        server = RecordingServer(make_payload("2.0.0", ["new-crisis-resource.org"]))
        client, _, _ = make_client(server)

        async def run():
            async with client:
                await client.sync()
                return await client.force_sync()

        result = asyncio.run(run())

        assert "if-none-match" not in server.requests[1].headers
        assert result.reason == "same_version"

    def test_new_version_replaces_previous(self):
        server = RecordingServer(make_payload("2.0.0", ["first-crisis-site.org"]))
        client, oracle, store = make_client(server)

        async def run():
            async with client:
                await client.sync()
                server.payload = make_payload("2.1.0", ["second-crisis-site.org"])
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert client.current_version == "2.1.0"
        assert oracle.is_url_protected("https://second-crisis-site.org/")
        assert store.write_count(SNAPSHOT_KEY) == 2
        snapshot = SnapshotStore.decode(store.data[SNAPSHOT_KEY])
        assert snapshot.version == "2.1.0"
        assert snapshot.last_updated == START_MS

    def test_corrupted_cache_sends_no_etag(self):
        server = RecordingServer(make_payload("2.0.0", ["new-crisis-resource.org"]))
        store = InMemoryKeyValueStore({SNAPSHOT_KEY: "{garbage"})
        client, oracle, _ = make_client(server, store=store)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert "if-none-match" not in server.requests[0].headers
        assert result.changed
        assert oracle.is_url_protected("https://new-crisis-resource.org/")

    def test_resource_patterns_are_applied(self):
        payload = make_payload(
            "3.0.0",
            ["wildcard-crisis.org"],
            patterns={"wildcard-crisis.org": "*.wildcard-crisis.org"},
        )
        client, oracle, store = make_client(RecordingServer(payload))

        async def run():
            async with client:
                return await client.sync()

        asyncio.run(run())

        assert oracle.is_url_protected("https://chat.wildcard-crisis.org/")
        assert "*.wildcard-crisis.org" in SnapshotStore.decode(store.data[SNAPSHOT_KEY]).patterns


class TestMonotonicProtectionProperty:
    """
    Property-based tests for the bundled-defaults floor.

    **Feature: crisis-allowlist, Property 19: Syncs never remove bundled protection**
    """

    @given(
        versions=st.lists(
            st.tuples(
                st.sampled_from(["1.1.0", "1.2.0", "2.0.0", "2.0.1-emergency-x1"]),
                st.lists(
                    st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=12, max_size=20).map(
                        lambda s: s + ".org"
                    ),
                    min_size=1,
                    max_size=5,
                ),
            ),
            min_size=1,
            max_size=4,
            unique_by=lambda item: item[0],
        )
    )
    @settings(max_examples=30, deadline=None)
    def test_bundled_domains_survive_any_sync_sequence(self, versions: list):
        """
        *For any* sequence of server responses, every bundled domain stays
        protected and every domain of the latest version is protected.
        """
        server = RecordingServer(make_payload(*versions[0]))
        client, oracle, _ = make_client(server)

        async def run():
            async with client:
                for version, domains in versions:
                    server.payload = make_payload(version, domains)
                    await client.sync()

        asyncio.run(run())

        for domain in BUNDLED_DOMAINS:
            assert oracle.is_url_protected(f"https://{domain}/")
        for domain in versions[-1][1]:
            assert oracle.is_url_protected(f"https://{domain}/")

    def test_server_list_omitting_bundled_domain_keeps_it(self):
        server = RecordingServer(make_payload("9.0.0", ["only-this-one.org"]))
        client, oracle, _ = make_client(server)

        async def run():
            async with client:
                return await client.sync()

        assert asyncio.run(run()).changed
        assert oracle.is_url_protected("https://988lifeline.org/")
        assert oracle.is_url_protected("https://chat.988lifeline.org/")

    @given(records=st.lists(
        st.tuples(
            st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=3, max_size=10).map(lambda s: s + ".org"),
            st.lists(st.sampled_from(["alias-one.org", "alias-two.org", "", "  "]), max_size=3),
        ),
        max_size=10,
    ))
    @settings(max_examples=100)
    def test_flatten_counts_primary_and_non_empty_aliases(self, records: list):
        """
        *For any* N resources with M non-empty aliases, flattening gives N + M entries.
        """
        resources = [
            ProtectedDomainRecord(
                id=str(i), domain=domain, category="crisis", name=domain, description="", aliases=tuple(aliases)
            )
            for i, (domain, aliases) in enumerate(records)
        ]
        non_empty_aliases = sum(1 for _, aliases in records for a in aliases if a.strip())

        assert len(flatten_resources(resources)) == len(records) + non_empty_aliases


class TestSyncFailureProperty:
    """
    Property-based tests for failed syncs.

    **Feature: crisis-allowlist, Property 20: Failed syncs keep the current index**
    """

    def test_empty_resources_rejected_without_retry(self):
        handler = sequence_handler([httpx.Response(200, json={"version": "5.0.0", "resources": []})])
        client, oracle, store = make_client(handler)
        index = oracle.index

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert not result.changed
        assert result.reason == SyncErrorCode.EMPTY_RESOURCES.value
        assert result.attempts == 1
        assert oracle.index is index
        assert store.write_count(SNAPSHOT_KEY) == 0

    def test_network_error_retried_then_reported(self):
        handler = sequence_handler([httpx.ConnectError("Connection refused")])
        client, oracle, store = make_client(handler)
        index = oracle.index

        async def run():
            async with client:
                return await client.sync_allowlist_from_server(), client.current_version

        changed, version = asyncio.run(run())

        assert changed is False
        assert version is None
        assert len(handler.calls) == 3
        assert oracle.index is index
        assert store.write_count(SNAPSHOT_KEY) == 0

    def test_timeout_reported(self):
        handler = sequence_handler([httpx.ReadTimeout("timed out")])
        client, _, _ = make_client(handler)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())
        assert result.reason == SyncErrorCode.TIMEOUT.value
        assert result.attempts == 3

    def test_server_error_then_success(self):
        payload = make_payload("2.0.0", ["recovered-crisis-site.org"])
        handler = sequence_handler([httpx.Response(503), httpx.Response(200, json=payload)])
        client, oracle, _ = make_client(handler)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert result.attempts == 2
        assert oracle.is_url_protected("https://recovered-crisis-site.org/")

    def test_rate_limit_is_retried(self):
        payload = make_payload("2.0.0", ["patient-crisis-site.org"])
        handler = sequence_handler([httpx.Response(429), httpx.Response(429), httpx.Response(200, json=payload)])
        client, _, _ = make_client(handler)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())
        assert result.changed
        assert result.attempts == 3

    @given(status=st.sampled_from([400, 401, 403, 404, 410, 418]))
    @settings(max_examples=20, deadline=None)
    def test_client_errors_not_retried(self, status: int):
        """
        *For any* 4xx status other than 429, the request is made exactly once.
        """
        handler = sequence_handler([httpx.Response(status)])
        client, _, _ = make_client(handler)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert len(handler.calls) == 1
        assert result.reason == SyncErrorCode.CLIENT_ERROR.value

    def test_malformed_json_not_retried(self):
        handler = sequence_handler([httpx.Response(200, content=b"<html>oops</html>")])
        client, _, _ = make_client(handler)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())
        assert result.reason == SyncErrorCode.PARSE_ERROR.value
        assert len(handler.calls) == 1

    def test_insecure_endpoint_refused_without_request(self):
        handler = sequence_handler([httpx.Response(200, json=make_payload("2.0.0", ["x-crisis-site.org"]))])
        client, _, _ = make_client(handler, endpoint="http://allowlist.test/v1")

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert not result.changed
        assert result.reason == SyncErrorCode.TLS_ERROR.value
        assert handler.calls == []

    def test_insecure_endpoint_allowed_when_configured(self):
        handler = sequence_handler([httpx.Response(200, json=make_payload("2.0.0", ["x-crisis-site.org"]))])
        client, _, _ = make_client(handler, endpoint="http://allowlist.test/v1", allow_insecure=True)

        async def run():
            async with client:
                return await client.sync()

        assert asyncio.run(run()).changed

    def test_persistence_failure_still_publishes(self):
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream)
        server = RecordingServer(make_payload("2.0.0", ["unsaved-crisis-site.org"]))
        client, oracle, _ = make_client(server, store=FailingStore(), logger=logger)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert oracle.is_url_protected("https://unsaved-crisis-site.org/")
        assert any(e.data.get("error_code") == "io_error" for e in logger.entries)

    def test_failures_logged_without_browsing_data(self):
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream)
        handler = sequence_handler([httpx.Response(500)])
        client, _, _ = make_client(handler, logger=logger)

        async def run():
            async with client:
                return await client.sync()

        asyncio.run(run())

        error = logger.entries[-1]
        assert error.data["code"] == "server_error"
        assert error.data["attempts"] == 3
        assert error.data["response_status_code"] == 500


class TestRefreshScheduleProperty:
    """
    Property-based tests for TTLs and staleness.

    **Feature: crisis-allowlist, Property 21: Emergency versions refresh hourly**
    """

    @given(elapsed_minutes=st.integers(min_value=0, max_value=72 * 60))
    @settings(max_examples=50, deadline=None)
    def test_ttl_depends_on_emergency_marker(self, elapsed_minutes: int):
        """
        *For any* elapsed time, a normal version needs refresh after 24h and
        an emergency version after 1h.
        """
        elapsed_ms = elapsed_minutes * 60 * 1000
        for version, ttl in (("2.0.0", 24 * HOUR_MS), ("2.0.1-emergency-abc", HOUR_MS)):
            clock = FakeClock()
            client, _, _ = make_client(RecordingServer(make_payload(version, ["ttl-crisis-site.org"])), clock=clock)

            async def run():
                async with client:
                    await client.sync()
                    clock.advance(elapsed_ms)
                    return await client.needs_refresh()

            assert asyncio.run(run()) == (elapsed_ms >= ttl)

    def test_needs_refresh_without_history(self):
        client, _, _ = make_client(sequence_handler([httpx.Response(500)]))
        assert asyncio.run(client.needs_refresh()) is True

    def test_status_tracks_age_and_staleness(self):
        clock = FakeClock()
        client, _, _ = make_client(RecordingServer(make_payload("2.0.0", ["status-crisis-site.org"])), clock=clock)

        async def run():
            async with client:
                before = await client.get_sync_status()
                await client.sync()
                fresh = await client.get_sync_status()
                clock.advance(49 * HOUR_MS)
                stale = await client.get_sync_status()
                return before, fresh, stale

        before, fresh, stale = asyncio.run(run())

        assert before.version is None
        assert before.is_stale
        assert before.cache_age_ms is None

        assert fresh.version == "2.0.0"
        assert fresh.cache_age_ms == 0
        assert not fresh.is_stale
        assert fresh.last_sync_at == START_MS

        assert stale.cache_age_ms == 49 * HOUR_MS
        assert stale.is_stale

    def test_not_modified_resets_age(self):
        clock = FakeClock()
        client, _, _ = make_client(RecordingServer(make_payload("2.0.0", ["status-crisis-site.org"])), clock=clock)

        async def run():
            async with client:
                await client.sync()
                clock.advance(30 * HOUR_MS)
                await client.sync()
                return await client.get_sync_status()

        status = asyncio.run(run())

        assert status.cache_age_ms == 0
        assert status.last_sync_at == START_MS

    def test_emergency_status_flag(self):
        client, _, _ = make_client(RecordingServer(make_payload("4.0.0-emergency-7f", ["urgent-crisis-site.org"])))

        async def run():
            async with client:
                result = await client.sync()
                return result, await client.get_sync_status()

        result, status = asyncio.run(run())
        assert result.is_emergency
        assert status.is_emergency

    def test_is_emergency_version(self):
        assert is_emergency_version("2.4.1-emergency-abc123")
        assert not is_emergency_version("2.4.1")
        assert not is_emergency_version("emergency")
        assert not is_emergency_version(None)


class TestSnapshotRestoreProperty:
    """
    Property-based tests for restoring from the persisted snapshot.

    **Feature: crisis-allowlist, Property 22: Restored snapshots extend the bundled set**
    """

    def test_restore_publishes_snapshot_without_network(self):
        snapshot = AllowlistSnapshot(
            version="2.0.0",
            last_updated=START_MS,
            domains=["cached-crisis-site.org"],
            patterns=["*.cached-crisis-site.org"],
        )
        store = InMemoryKeyValueStore({SNAPSHOT_KEY: SnapshotStore.encode(snapshot)})
        handler = sequence_handler([httpx.Response(500)])
        client, oracle, _ = make_client(handler, store=store)

        restored = asyncio.run(client.restore_from_snapshot())

        assert restored
        assert handler.calls == []
        assert client.source == SyncSource.CACHE
        assert client.current_version == "2.0.0"
        assert oracle.is_url_protected("https://www.cached-crisis-site.org/")
        assert oracle.is_url_protected("https://chat.cached-crisis-site.org/")
        assert oracle.is_url_protected("https://988lifeline.org/")

    def test_restore_without_snapshot(self):
        client, _, _ = make_client(sequence_handler([httpx.Response(500)]))
        assert asyncio.run(client.restore_from_snapshot()) is False
        assert client.source == SyncSource.BUNDLED

    def test_restore_with_tampered_snapshot(self):
        store = InMemoryKeyValueStore({SNAPSHOT_KEY: json.dumps({"version": 3})})
        client, oracle, _ = make_client(sequence_handler([httpx.Response(500)]), store=store)
        index = oracle.index

        assert asyncio.run(client.restore_from_snapshot()) is False
        assert oracle.index is index


class TestPayloadParsingProperty:
    """
    Property-based tests for response parsing.

    **Feature: crisis-allowlist, Property 23: Only defined fields are read**
    """

    def test_resources_without_domain_are_skipped(self):
        payload = parse_payload({
            "version": "1.0",
            "resources": [
                {"domain": "kept-crisis-site.org", "aliases": ["alias-crisis.org", ""], "unknown": {"x": 1}},
                {"name": "no domain here"},
                "not an object",
                {"domain": "   "},
            ],
        })

        assert [r.domain for r in payload.resources] == ["kept-crisis-site.org"]
        assert payload.resources[0].aliases == ("alias-crisis.org",)

    def test_invalid_bodies(self):
        for body, code in (
            ([], "parse_error"),
            ({"resources": []}, "parse_error"),
            ({"version": "1.0", "resources": "x"}, "parse_error"),
            ({"version": "1.0", "resources": [{"name": "x"}]}, "empty_resources"),
        ):
            try:
                parse_payload(body)
            except ProtocolError as e:
                assert e.code == code
            else:
                raise AssertionError(f"{body!r} was accepted")

    def test_fetch_reports_not_modified(self):
        server = RecordingServer(make_payload("2.0.0", ["etag-crisis-site.org"]))
        client, _, _ = make_client(server)

        async def run():
            async with client:
                return await client.fetch("2.0.0")

        response = asyncio.run(run())
        assert response.status == FetchStatus.NOT_MODIFIED
        assert response.payload is None


class StatusServer(RecordingServer):
    """RecordingServer that also accepts sync status reports."""

    def __init__(self, payload: dict, honor_etag: bool = True, status_response=None):
        super().__init__(payload, honor_etag)
        self.status_response = status_response
        self.reports: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) != STATUS_ENDPOINT:
            return super().__call__(request)
        if isinstance(self.status_response, Exception):
            raise self.status_response
        self.reports.append(json.loads(request.content))
        return self.status_response or httpx.Response(204)


class TestSyncStatusReportProperty:
    """
    Property-based tests for sync status reporting.

    **Feature: crisis-allowlist, Property 49: Status reports follow fetched bodies and never fail a sync**
    """

    @given(version=st.sampled_from(["2.0.0", "2.4.1-emergency-abc123", "3.1.0-rc1"]))
    @settings(max_examples=10, deadline=None)
    def test_report_sent_after_successful_sync(self, version: str):
        """
        *For any* fetched version, one report carries the version, a zero
        cache age and the emergency flag.
        """
        server = StatusServer(make_payload(version, ["reported-crisis-site.org"]))
        client, _, _ = make_client(server, status_endpoint=STATUS_ENDPOINT)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert server.reports == [{
            "platform": "python",
            "version": version,
            "cacheAge": 0,
            "isEmergency": is_emergency_version(version),
        }]

    def test_no_report_without_endpoint_or_body(self):
        server = StatusServer(make_payload("2.0.0", ["reported-crisis-site.org"]))
        client, _, _ = make_client(server)

        async def run():
            async with client:
                await client.sync()

        asyncio.run(run())
        assert server.reports == []
        assert all(str(r.url) == ENDPOINT for r in server.requests)

        server = StatusServer(make_payload("2.0.0", ["reported-crisis-site.org"]))
        client, _, _ = make_client(server, status_endpoint=STATUS_ENDPOINT)

        async def run_twice():
            async with client:
                await client.sync()
                return await client.sync()

        second = asyncio.run(run_twice())
        assert second.reason == "not_modified"
        assert len(server.reports) == 1

    def test_same_version_body_is_reported(self):
        server = StatusServer(make_payload("2.0.0", ["reported-crisis-site.org"]), honor_etag=False)
        client, _, _ = make_client(server, status_endpoint=STATUS_ENDPOINT)

        async def run():
            async with client:
                await client.sync()
                return await client.sync()

        result = asyncio.run(run())
        assert result.reason == "same_version"
        assert [r["version"] for r in server.reports] == ["2.0.0", "2.0.0"]

    @given(failure=st.sampled_from([
        lambda: httpx.ConnectError("Connection refused"),
        lambda: httpx.ReadTimeout("timed out"),
        lambda: httpx.Response(500),
        lambda: httpx.Response(404),
    ]))
    @settings(max_examples=10, deadline=None)
    def test_report_failure_does_not_change_result(self, failure):
        """
        *For any* failing status endpoint, the sync still publishes and
        the failure is logged as a warning.
        """
        server = StatusServer(make_payload("2.0.0", ["reported-crisis-site.org"]), status_response=failure())
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        client, oracle, store = make_client(server, logger=logger, status_endpoint=STATUS_ENDPOINT)

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert result.version == "2.0.0"
        assert oracle.is_url_protected("https://reported-crisis-site.org/")
        assert store.write_count(SNAPSHOT_KEY) == 1
        assert logger.entries[-1].level.value == "warn"
        assert logger.entries[-1].message.startswith("Sync status report")

    def test_insecure_status_endpoint_not_contacted(self):
        server = StatusServer(make_payload("2.0.0", ["reported-crisis-site.org"]))
        client, _, _ = make_client(server, status_endpoint="http://allowlist.test/v1/sync-status")

        async def run():
            async with client:
                return await client.sync()

        result = asyncio.run(run())

        assert result.changed
        assert server.reports == []
