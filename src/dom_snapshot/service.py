"""Baseline lifecycle for DOM snapshots.

SnapshotService captures named snapshots through a CaptureBridge, persists
them according to the storage policy and compares fresh captures against
the stored baselines.

Per (name, mode) there are two states: no baseline, where ``compare``
creates one and reports ``created``, and baseline exists, where ``compare``
reports ``match`` or ``mismatch``. The update-baseline override makes
``compare`` capture and overwrite regardless of state.

Concurrent ``compare`` calls for the same name are not coordinated; callers
running tests in parallel against one snapshot name must serialize them.
"""

from typing import Any, Optional

import structlog

from src.config import SnapshotSettings, get_settings
from src.utils.logging import log_operation

from .capture import CaptureBridge
from .diff import generate_diff, hash_payload
from .models import (
    DEFAULT_IGNORE_TAGS,
    CaptureOptions,
    ComparisonResult,
    ComparisonStatus,
    DiffEntry,
    DiffType,
    Snapshot,
    SnapshotError,
    SnapshotMode,
    StorageMode,
    StoreRole,
    utc_timestamp,
)
from .store import FileSnapshotStore, SnapshotStore

logger = structlog.get_logger(__name__)

HASH_ONLY_MESSAGE = "Baseline contains hash only. Full actual saved for inspection."

# Capture method run by the bridge for each mode
_METHODS = {
    SnapshotMode.DOM: "get_dom",
    SnapshotMode.STYLES: "get_styles",
    SnapshotMode.FULL: "capture",
}


class UnknownModeError(SnapshotError, ValueError):
    """Raised when a snapshot mode is not dom, styles or full."""

    pass


class UnknownStorageError(SnapshotError, ValueError):
    """Raised when a storage policy is not hash, full or hash+diff."""

    pass


class SnapshotMismatchError(SnapshotError):
    """Raised on mismatch when the service is set to fail on mismatch."""

    def __init__(self, result: ComparisonResult):
        super().__init__(result.get_summary())
        self.result = result


def _parse_mode(mode: SnapshotMode | str) -> SnapshotMode:
    try:
        return SnapshotMode(mode)
    except ValueError:
        raise UnknownModeError(f"Unknown mode: {mode}") from None


def _parse_storage(storage: StorageMode | str) -> StorageMode:
    try:
        return StorageMode(storage)
    except ValueError:
        raise UnknownStorageError(f"Unknown storage: {storage}") from None


def default_capture_options() -> CaptureOptions:
    """Capture options used by the service when none are given."""
    return CaptureOptions(ignore_tags=DEFAULT_IGNORE_TAGS + ("iframe",))


class SnapshotService:
    """Captures, persists and compares named DOM snapshots.

    Attributes:
        bridge: Obtains capture payloads from a document
        store: Persists baseline, actual and diff documents
        settings: Settings the service was created from; never mutated
        capture_options: Options passed to every capture
        mode: Mode used by the unified ``capture`` / ``compare``
        storage: Storage policy in effect
        update_baseline_enabled: Whether the update-baseline override is on
    """

    def __init__(
        self,
        bridge: CaptureBridge,
        store: Optional[SnapshotStore] = None,
        settings: Optional[SnapshotSettings] = None,
        capture_options: Optional[CaptureOptions] = None,
    ):
        self.bridge = bridge
        self.settings = settings or get_settings()
        self.store = store or FileSnapshotStore(
            self.settings.baseline_dir,
            self.settings.actual_dir,
            self.settings.diff_dir,
        )
        self.capture_options = capture_options or default_capture_options()
        self.mode = _parse_mode(self.settings.mode)
        self.storage = _parse_storage(self.settings.storage)
        self.update_baseline_enabled = self.settings.update_baseline
        self.auto_write = self.settings.auto_write
        self.fail_on_mismatch = self.settings.fail_on_mismatch
        self.log = logger.bind(component="snapshot_service")

    # Controls

    def set_mode(self, mode: SnapshotMode | str) -> None:
        """Set the mode used by ``capture`` and ``compare``.

        Raises:
            UnknownModeError: If ``mode`` is not a known mode
        """
        self.mode = _parse_mode(mode)

    def set_storage(self, storage: StorageMode | str) -> None:
        """Set the storage policy.

        Raises:
            UnknownStorageError: If ``storage`` is not a known policy
        """
        self.storage = _parse_storage(storage)

    def update_baseline(self, enabled: bool = True) -> None:
        """Turn the update-baseline override on or off."""
        self.update_baseline_enabled = enabled

    def ignore(self, selector: str) -> "SnapshotService":
        """Exclude elements matching ``selector`` from later captures."""
        self.capture_options = self.capture_options.with_ignored_selector(selector)
        return self

    # Unified API

    async def capture(self, name: str, selector: str = "body") -> Snapshot:
        """Capture ``name`` in the current mode."""
        return await self._capture_snapshot(name, self.mode, selector)

    async def compare(self, name: str, selector: str = "body") -> ComparisonResult:
        """Compare ``name`` against its baseline in the current mode."""
        return await self._compare_snapshot(name, self.mode, selector)

    # Mode-specific API

    async def capture_dom(self, name: str, selector: str = "body") -> Snapshot:
        return await self._capture_snapshot(name, SnapshotMode.DOM, selector)

    async def capture_styles(self, name: str, selector: str = "body") -> Snapshot:
        return await self._capture_snapshot(name, SnapshotMode.STYLES, selector)

    async def capture_full(self, name: str, selector: str = "body") -> Snapshot:
        return await self._capture_snapshot(name, SnapshotMode.FULL, selector)

    async def compare_dom(self, name: str, selector: str = "body") -> ComparisonResult:
        return await self._compare_snapshot(name, SnapshotMode.DOM, selector)

    async def compare_styles(self, name: str, selector: str = "body") -> ComparisonResult:
        return await self._compare_snapshot(name, SnapshotMode.STYLES, selector)

    async def compare_full(self, name: str, selector: str = "body") -> ComparisonResult:
        return await self._compare_snapshot(name, SnapshotMode.FULL, selector)

    def get_baseline(self, name: str, mode: SnapshotMode | str | None = None) -> Snapshot:
        """Load the stored baseline of ``name``.

        Raises:
            SnapshotNotFoundError: If no baseline exists
        """
        mode = _parse_mode(mode) if mode is not None else self.mode
        return Snapshot.from_dict(self.store.get(StoreRole.BASELINE, name, mode.value))

    # Internals

    async def _execute(self, mode: SnapshotMode, selector: str) -> dict[str, Any]:
        return await self.bridge.evaluate(selector, self.capture_options, _METHODS[mode])

    def _build_snapshot(self, name: str, mode: SnapshotMode, result: dict[str, Any]) -> Snapshot:
        data = result.get("data")
        return Snapshot(
            name=name,
            type=mode,
            timestamp=utc_timestamp(),
            hash=hash_payload(data),
            meta=result.get("meta") or {},
            options=self.capture_options.to_dict(),
            data=data,
        )

    def _write_snapshot(self, snapshot: Snapshot, store_full: bool) -> None:
        """Persist a capture, honoring ``auto_write``.

        The in-memory snapshot keeps its full payload either way.
        """
        if not self.auto_write:
            return
        role = StoreRole.BASELINE if self.update_baseline_enabled else StoreRole.ACTUAL
        snapshot.path = self.store.put(
            role,
            snapshot.name,
            snapshot.type.value,
            snapshot.to_dict(include_data=store_full),
        )

    def _write_baseline(self, snapshot: Snapshot) -> str:
        return self.store.put(
            StoreRole.BASELINE,
            snapshot.name,
            snapshot.type.value,
            snapshot.to_dict(include_data=self.storage == StorageMode.FULL),
        )

    async def _capture_snapshot(self, name: str, mode: SnapshotMode, selector: str) -> Snapshot:
        result = await self._execute(mode, selector)
        snapshot = self._build_snapshot(name, mode, result)
        self._write_snapshot(snapshot, store_full=self.storage == StorageMode.FULL)
        self.log.debug(
            "Snapshot captured",
            snapshot=name,
            mode=mode.value,
            hash=snapshot.hash,
            path=snapshot.path,
        )
        return snapshot

    async def _compare_snapshot(self, name: str, mode: SnapshotMode, selector: str) -> ComparisonResult:
        with log_operation(
            "snapshot_compare",
            logger=self.log,
            snapshot=name,
            mode=mode.value,
            storage=self.storage.value,
        ) as op:
            if self.update_baseline_enabled:
                result = await self._overwrite_baseline(name, mode, selector)
            elif not self.store.exists(StoreRole.BASELINE, name, mode.value):
                result = await self._create_baseline(name, mode, selector)
            else:
                result = await self._compare_with_baseline(name, mode, selector)
            op["status"] = result.status.value
            op["diff_count"] = result.diff_count

        if self.fail_on_mismatch and result.status == ComparisonStatus.MISMATCH:
            raise SnapshotMismatchError(result)
        return result

    async def _overwrite_baseline(self, name: str, mode: SnapshotMode, selector: str) -> ComparisonResult:
        result = await self._execute(mode, selector)
        snapshot = self._build_snapshot(name, mode, result)
        snapshot.path = self._write_baseline(snapshot)
        self.log.info("Baseline updated", snapshot=name, mode=mode.value, hash=snapshot.hash)

        reference = {"hash": snapshot.hash, "timestamp": snapshot.timestamp}
        return ComparisonResult(
            status=ComparisonStatus.CREATED,
            message="Baseline updated",
            mode=mode,
            storage=self.storage,
            match=True,
            hash=snapshot.hash,
            baseline=reference,
            actual=dict(reference),
        )

    async def _create_baseline(self, name: str, mode: SnapshotMode, selector: str) -> ComparisonResult:
        snapshot = await self._capture_snapshot(name, mode, selector)
        self._write_baseline(snapshot)
        self.log.info("Baseline created", snapshot=name, mode=mode.value, hash=snapshot.hash)

        reference = {"hash": snapshot.hash, "timestamp": snapshot.timestamp}
        return ComparisonResult(
            status=ComparisonStatus.CREATED,
            message="Baseline created",
            mode=mode,
            storage=self.storage,
            match=True,
            hash=snapshot.hash,
            baseline=reference,
            actual=dict(reference),
        )

    async def _compare_with_baseline(self, name: str, mode: SnapshotMode, selector: str) -> ComparisonResult:
        baseline = self.store.get(StoreRole.BASELINE, name, mode.value)

        result = await self._execute(mode, selector)
        actual = self._build_snapshot(name, mode, result)
        match = baseline["hash"] == actual.hash

        store_full = self.storage == StorageMode.FULL or (
            self.storage == StorageMode.HASH_DIFF and not match
        )
        self._write_snapshot(actual, store_full=store_full)

        diff: list[DiffEntry] | None = None
        if not match:
            if "data" in baseline:
                diff = generate_diff(baseline["data"], actual.data)
                self.store.put(
                    StoreRole.DIFF,
                    name,
                    mode.value,
                    {
                        "baseline": {"hash": baseline["hash"], "timestamp": baseline["timestamp"]},
                        "actual": {"hash": actual.hash, "timestamp": actual.timestamp},
                        "changes": [entry.to_dict() for entry in diff],
                    },
                    suffix="diff",
                )
            else:
                document = actual.to_dict()
                if actual.path:
                    document["path"] = actual.path
                self.store.put(StoreRole.DIFF, name, mode.value, document, suffix="actual")
                diff = [
                    DiffEntry(
                        path="",
                        type=DiffType.HASH_MISMATCH,
                        message=HASH_ONLY_MESSAGE,
                        baseline_hash=baseline["hash"],
                        actual_hash=actual.hash,
                    )
                ]

        comparison = ComparisonResult(
            status=ComparisonStatus.MATCH if match else ComparisonStatus.MISMATCH,
            mode=mode,
            storage=self.storage,
            match=match,
            baseline={"hash": baseline["hash"], "timestamp": baseline["timestamp"]},
            actual={"hash": actual.hash, "timestamp": actual.timestamp},
            diff=diff,
        )

        if match:
            self.log.info("Snapshot matches baseline", snapshot=name, mode=mode.value)
        else:
            self.log.warning(
                "Snapshot differs from baseline",
                snapshot=name,
                mode=mode.value,
                storage=self.storage.value,
                diff_count=comparison.diff_count,
            )
        return comparison
