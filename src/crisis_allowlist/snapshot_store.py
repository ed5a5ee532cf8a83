"""
Snapshot persistence for the allowlist.

The engine persists through an injected key-value store. Two stores are
provided: an in-memory one (tests, embedding hosts with their own storage)
and an HMAC-protected JSON file that detects tampering on load.
"""

import hashlib
import hmac
import json
from abc import abstractmethod
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .exceptions import PersistenceError, TamperingError
from .models import AllowlistSnapshot


SNAPSHOT_KEY = "crisis_allowlist.snapshot"
LAST_REFRESHED_KEY = "crisis_allowlist.last_refreshed"


@runtime_checkable
class KeyValueStore(Protocol):
    """Async string key-value storage."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store that counts writes per key."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._writes: dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._writes[key] = self._writes.get(key, 0) + 1

    def write_count(self, key: str) -> int:
        return self._writes.get(key, 0)

    @property
    def data(self) -> dict[str, str]:
        return dict(self._data)


class FileKeyValueStore:
    """
    JSON file store with HMAC-SHA256 protection.

    The whole file is rewritten on every set. On load the HMAC over the
    entries is recomputed and compared in constant time.
    """

    VERSION = 1

    def __init__(self, file_path: Path, hmac_secret: str) -> None:
        """
        Initialize the file store.

        Args:
            file_path: Path to the state file (JSON format)
            hmac_secret: Secret key for HMAC computation
        """
        if not hmac_secret:
            raise ValueError("HMAC secret cannot be empty")
        self._file_path = Path(file_path)
        self._hmac_secret = hmac_secret.encode("utf-8")

    @property
    def file_path(self) -> Path:
        return self._file_path

    async def get(self, key: str) -> Optional[str]:
        return self._read_entries().get(key)

    async def set(self, key: str, value: str) -> None:
        entries = self._read_entries()
        entries[key] = value
        self._write_entries(entries)

    def _read_entries(self) -> dict[str, str]:
        """
        Load and validate the file.

        Raises:
            TamperingError: If HMAC validation fails
            PersistenceError: If the file cannot be read or parsed
        """
        if not self._file_path.exists():
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                code="parse_error",
                message=f"Failed to parse state file: {e}",
                details={"file": str(self._file_path)},
            )
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to read state file: {e}",
                details={"file": str(self._file_path)},
            )

        if not isinstance(raw_data, dict) or not isinstance(raw_data.get("entries", {}), dict):
            raise PersistenceError(
                code="parse_error",
                message="State file has an unexpected structure",
                details={"file": str(self._file_path)},
            )

        entries = raw_data.get("entries", {})
        stored_hmac = raw_data.get("hmac", "")
        computed_hmac = self.compute_hmac({"version": raw_data.get("version"), "entries": entries})

        if not isinstance(stored_hmac, str) or not self.validate_hmac(stored_hmac, computed_hmac):
            raise TamperingError(
                code="hmac_mismatch",
                message="HMAC validation failed - state file may have been tampered with",
                details={"file": str(self._file_path)},
            )

        return {str(k): v for k, v in entries.items() if isinstance(v, str)}

    def _write_entries(self, entries: dict[str, str]) -> None:
        data_for_hmac = {"version": self.VERSION, "entries": entries}
        output_data = dict(data_for_hmac, hmac=self.compute_hmac(data_for_hmac))

        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(output_data, f, indent=2, sort_keys=True)
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to write state file: {e}",
                details={"file": str(self._file_path)},
            )

    def compute_hmac(self, data: dict) -> str:
        """HMAC-SHA256 over the canonical JSON serialization of data."""
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def validate_hmac(self, stored_hmac: str, computed_hmac: str) -> bool:
        return hmac.compare_digest(stored_hmac, computed_hmac)


class SnapshotStore:
    """
    Typed access to the persisted snapshot and last-refreshed timestamp.

    The two live under separate keys so that refreshing the timestamp
    never rewrites the snapshot.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def load(self) -> Optional[AllowlistSnapshot]:
        """
        Read the persisted snapshot.

        Returns:
            The snapshot, or None if nothing was persisted yet

        Raises:
            PersistenceError: If the stored value is not a valid snapshot
        """
        raw = await self._store.get(SNAPSHOT_KEY)
        if raw is None:
            return None
        return self.decode(raw)

    async def save(self, snapshot: AllowlistSnapshot) -> None:
        await self._store.set(SNAPSHOT_KEY, self.encode(snapshot))

    async def touch_refreshed(self, timestamp_ms: int) -> None:
        await self._store.set(LAST_REFRESHED_KEY, str(int(timestamp_ms)))

    async def last_refreshed(self) -> Optional[int]:
        """Epoch ms of the last successful server contact; None if unknown or invalid."""
        raw = await self._store.get(LAST_REFRESHED_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    @staticmethod
    def encode(snapshot: AllowlistSnapshot) -> str:
        data = {
            "version": snapshot.version,
            "lastUpdated": snapshot.last_updated,
            "domains": list(snapshot.domains),
        }
        if snapshot.patterns:
            data["patterns"] = list(snapshot.patterns)
        return json.dumps(data, separators=(",", ":"))

    @staticmethod
    def decode(raw: str) -> AllowlistSnapshot:
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise PersistenceError(
                code="corrupt_snapshot",
                message=f"Snapshot is not valid JSON: {e}",
            )

        if not isinstance(data, dict):
            raise PersistenceError(code="corrupt_snapshot", message="Snapshot is not an object")

        version = data.get("version")
        last_updated = data.get("lastUpdated")
        domains = data.get("domains")
        patterns = data.get("patterns", [])

        if not isinstance(version, str) or not version.strip():
            raise PersistenceError(code="corrupt_snapshot", message="Snapshot version is missing")
        if not isinstance(last_updated, int) or isinstance(last_updated, bool):
            raise PersistenceError(code="corrupt_snapshot", message="Snapshot lastUpdated is not epoch ms")
        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise PersistenceError(code="corrupt_snapshot", message="Snapshot domains are not a list of strings")
        if not isinstance(patterns, list):
            patterns = []

        return AllowlistSnapshot(
            version=version,
            last_updated=last_updated,
            domains=domains,
            patterns=[p for p in patterns if isinstance(p, str)],
        )
