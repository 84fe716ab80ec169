"""Snapshot persistence.

Documents are keyed by role (baseline / actual / diff), snapshot name,
snapshot type and an optional variant suffix used in the diff role
(``diff`` for change lists, ``actual`` for full actual payloads saved for
inspection). Stores provide exists/get/put only; concurrent writers for the
same key are not coordinated.
"""

import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from .models import SnapshotError, StoreRole

logger = structlog.get_logger(__name__)


class SnapshotNotFoundError(SnapshotError):
    """Raised when a snapshot document is read but does not exist."""

    pass


def snapshot_filename(name: str, snapshot_type: str, suffix: Optional[str] = None) -> str:
    """File name of a snapshot document, e.g. ``homepage.full.diff.json``."""
    parts = [name, snapshot_type]
    if suffix:
        parts.append(suffix)
    return ".".join(parts) + ".json"


class SnapshotStore(ABC):
    """Get/put/exists over (role, name, type, suffix) keys."""

    @abstractmethod
    def exists(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> bool:
        """Whether a document is stored under the key."""

    @abstractmethod
    def get(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> Dict[str, Any]:
        """Read a document.

        Raises:
            SnapshotNotFoundError: If nothing is stored under the key
        """

    @abstractmethod
    def put(
        self,
        role: StoreRole,
        name: str,
        snapshot_type: str,
        document: Dict[str, Any],
        suffix: Optional[str] = None,
    ) -> str:
        """Write a document, replacing any previous one.

        Returns:
            Location of the written document
        """


class FileSnapshotStore(SnapshotStore):
    """One pretty-printed JSON file per key, one directory per role."""

    def __init__(self, baseline_dir: str, actual_dir: str, diff_dir: str):
        self.directories = {
            StoreRole.BASELINE: Path(baseline_dir),
            StoreRole.ACTUAL: Path(actual_dir),
            StoreRole.DIFF: Path(diff_dir),
        }
        for directory in self.directories.values():
            directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> Path:
        return self.directories[StoreRole(role)] / snapshot_filename(name, snapshot_type, suffix)

    def exists(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> bool:
        return self.path_for(role, name, snapshot_type, suffix).is_file()

    def get(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> Dict[str, Any]:
        path = self.path_for(role, name, snapshot_type, suffix)
        if not path.is_file():
            raise SnapshotNotFoundError(f"Snapshot not found: {path}")
        return json.loads(path.read_text(encoding="utf-8"))

    def put(
        self,
        role: StoreRole,
        name: str,
        snapshot_type: str,
        document: Dict[str, Any],
        suffix: Optional[str] = None,
    ) -> str:
        path = self.path_for(role, name, snapshot_type, suffix)
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("Snapshot written", path=str(path), role=StoreRole(role).value)
        return str(path)


class MemorySnapshotStore(SnapshotStore):
    """Dict-backed store for tests and throwaway runs."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _key(role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str]) -> str:
        return f"{StoreRole(role).value}/{snapshot_filename(name, snapshot_type, suffix)}"

    def exists(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> bool:
        return self._key(role, name, snapshot_type, suffix) in self._documents

    def get(self, role: StoreRole, name: str, snapshot_type: str, suffix: Optional[str] = None) -> Dict[str, Any]:
        key = self._key(role, name, snapshot_type, suffix)
        if key not in self._documents:
            raise SnapshotNotFoundError(f"Snapshot not found: memory://{key}")
        return copy.deepcopy(self._documents[key])

    def put(
        self,
        role: StoreRole,
        name: str,
        snapshot_type: str,
        document: Dict[str, Any],
        suffix: Optional[str] = None,
    ) -> str:
        key = self._key(role, name, snapshot_type, suffix)
        self._documents[key] = copy.deepcopy(document)
        return f"memory://{key}"

    def keys(self) -> list[str]:
        """Stored keys, e.g. ``baseline/homepage.full.json``."""
        return sorted(self._documents)
