"""DOM snapshot module for structural and visual regression testing.

This module captures deterministic snapshots of rendered DOM subtrees
(structure, attributes, geometry, text, applied and pseudo-state styles)
and compares them against stored baselines.
"""

# Capture engine
from .capture import (
    CaptureBridge,
    CaptureSession,
    PlaywrightBridge,
    StaticBridge,
    TreeCapturer,
    run_capture,
)

# Hashing and diffing
from .diff import compare_snapshots, generate_diff, hash_payload
from .document import DomDocument, match_selector
from .models import (
    CaptureOptions,
    ComparisonResult,
    ComparisonStatus,
    DiffEntry,
    DiffType,
    Snapshot,
    SnapshotError,
    SnapshotMode,
    SnapshotNode,
    StorageMode,
    StoreRole,
    StyleEntry,
)
from .selectors import generate_selector

# Baseline lifecycle
from .service import (
    SnapshotMismatchError,
    SnapshotService,
    UnknownModeError,
    UnknownStorageError,
)

# Persistence
from .store import (
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotNotFoundError,
    SnapshotStore,
)
from .styles import RuleCache, StyleResolver, build_rule_cache

__all__ = [
    # Capture
    "CaptureBridge",
    "CaptureSession",
    "PlaywrightBridge",
    "StaticBridge",
    "TreeCapturer",
    "run_capture",
    "DomDocument",
    "match_selector",
    "generate_selector",
    "RuleCache",
    "StyleResolver",
    "build_rule_cache",
    # Models
    "CaptureOptions",
    "ComparisonResult",
    "ComparisonStatus",
    "DiffEntry",
    "DiffType",
    "Snapshot",
    "SnapshotMode",
    "SnapshotNode",
    "StorageMode",
    "StoreRole",
    "StyleEntry",
    # Hashing and diffing
    "compare_snapshots",
    "generate_diff",
    "hash_payload",
    # Service
    "SnapshotService",
    # Persistence
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "SnapshotStore",
    # Errors
    "SnapshotError",
    "SnapshotMismatchError",
    "SnapshotNotFoundError",
    "UnknownModeError",
    "UnknownStorageError",
]
