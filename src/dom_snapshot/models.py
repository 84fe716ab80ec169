"""DOM snapshot data models.

This module contains the dataclasses and enums shared by the capture engine,
the hash/diff engine and the baseline service. Every persisted model converts
to and from the JSON document shape through ``to_dict`` / ``from_dict``.
"""

import json
import math
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterator


class SnapshotError(Exception):
    """Base exception for snapshot operations."""

    pass


class SnapshotMode(str, Enum):
    """What a capture serializes."""

    DOM = "dom"  # Structure, attributes, geometry and text
    STYLES = "styles"  # Flat list of per-element applied styles
    FULL = "full"  # Structure plus applied and pseudo-state styles


class StorageMode(str, Enum):
    """What gets persisted alongside the content hash."""

    HASH = "hash"
    FULL = "full"
    HASH_DIFF = "hash+diff"


class ComparisonStatus(str, Enum):
    """Outcome of comparing a fresh capture against its baseline."""

    CREATED = "created"
    MATCH = "match"
    MISMATCH = "mismatch"


class DiffType(str, Enum):
    """Kinds of entries produced by the structural diff."""

    TYPE_CHANGE = "type_change"
    VALUE_CHANGE = "value_change"
    ADDED = "added"
    REMOVED = "removed"
    HASH_MISMATCH = "hash_mismatch"


class StoreRole(str, Enum):
    """Directory roles of the snapshot store."""

    BASELINE = "baseline"
    ACTUAL = "actual"
    DIFF = "diff"


DEFAULT_PSEUDO_STATES = ("hover", "active", "focus", "focus-within", "disabled", "checked")
DEFAULT_IGNORE_ATTRS = ("data-v-", "data-reactid", "data-gtm")
DEFAULT_IGNORE_TAGS = ("script", "style", "noscript", "svg", "path", "link", "meta")

# Persisted (camelCase) option names mapped to dataclass fields
OPTION_KEYS = {
    "root": "root",
    "depth": "depth",
    "includePseudo": "include_pseudo",
    "includeBox": "include_box",
    "includeText": "include_text",
    "pseudoStates": "pseudo_states",
    "ignoreAttrs": "ignore_attrs",
    "ignoreTags": "ignore_tags",
    "ignoreSelectors": "ignore_selectors",
    "ignoreHidden": "ignore_hidden",
}

_SEQUENCE_OPTIONS = {"pseudo_states", "ignore_attrs", "ignore_tags", "ignore_selectors"}


def utc_timestamp() -> str:
    """Current instant as an ISO-8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class CaptureOptions:
    """Options controlling one capture pass.

    Instances are immutable. Use ``from_overrides`` to derive a new set of
    options: overrides replace values key by key, so overriding a sequence
    option such as ``ignore_tags`` replaces the whole default sequence rather
    than extending it.
    """

    root: str = "body"
    depth: int | None = None  # None means unbounded
    include_pseudo: bool = True
    include_box: bool = True
    include_text: bool = True
    pseudo_states: tuple[str, ...] = DEFAULT_PSEUDO_STATES
    ignore_attrs: tuple[str, ...] = DEFAULT_IGNORE_ATTRS
    ignore_tags: tuple[str, ...] = DEFAULT_IGNORE_TAGS
    ignore_selectors: tuple[str, ...] = ()
    ignore_hidden: bool = True

    def __post_init__(self):
        for name in _SEQUENCE_OPTIONS:
            value = getattr(self, name)
            if isinstance(value, str):
                raise ValueError(f"Capture option {name} expects a list, got a string")
            object.__setattr__(self, name, tuple(value or ()))

    @classmethod
    def from_overrides(
        cls,
        overrides: dict[str, Any] | None = None,
        base: "CaptureOptions | None" = None,
    ) -> "CaptureOptions":
        """Merge overrides over ``base`` (or the defaults).

        Args:
            overrides: Option values keyed by field name or persisted camelCase name.
            base: Options to start from. Defaults to ``CaptureOptions()``.

        Returns:
            A new CaptureOptions instance.

        Raises:
            ValueError: If an override names an unknown option or passes a bare
                string for a sequence option or a non-number depth.
        """
        base = base or cls()
        field_names = {f.name for f in fields(cls)}
        changes: dict[str, Any] = {}

        for key, value in (overrides or {}).items():
            name = OPTION_KEYS.get(key, key)
            if name not in field_names:
                raise ValueError(f"Unknown capture option: {key}")

            if name in _SEQUENCE_OPTIONS and isinstance(value, str):
                raise ValueError(f"Capture option {key} expects a list, got a string")
            if name == "depth" and value is not None:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"Capture option {key} expects a number, got {value!r}")
                value = None if math.isinf(value) else int(value)

            changes[name] = value

        return replace(base, **changes)

    def with_ignored_selector(self, selector: str) -> "CaptureOptions":
        """Return a copy with ``selector`` appended to the ignore selectors."""
        return replace(self, ignore_selectors=self.ignore_selectors + (selector,))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON representation."""
        result: dict[str, Any] = {}
        for json_key, name in OPTION_KEYS.items():
            value = getattr(self, name)
            result[json_key] = list(value) if name in _SEQUENCE_OPTIONS else value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaptureOptions":
        """Create instance from dictionary."""
        return cls.from_overrides(data)


@dataclass
class SnapshotNode:
    """One captured element of the snapshot tree.

    Optional fields that are empty are omitted from the serialized form so
    payloads stay compact and diff-stable.
    """

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    box: dict[str, int] | None = None
    text: str | None = None
    styles: dict[str, str] | None = None
    pseudo: dict[str, dict[str, str]] | None = None
    children: list["SnapshotNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"tag": self.tag, "attrs": dict(self.attrs)}
        if self.box is not None:
            result["box"] = dict(self.box)
        if self.text:
            result["text"] = self.text
        if self.styles is not None:
            result["styles"] = dict(self.styles)
        if self.pseudo:
            result["pseudo"] = {state: dict(styles) for state, styles in self.pseudo.items()}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnapshotNode":
        """Create instance from dictionary."""
        return cls(
            tag=data["tag"],
            attrs=data.get("attrs", {}),
            box=data.get("box"),
            text=data.get("text"),
            styles=data.get("styles"),
            pseudo=data.get("pseudo"),
            children=[cls.from_dict(child) for child in data.get("children", [])],
        )

    def walk(self) -> Iterator["SnapshotNode"]:
        """Iterate over this node and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, tag: str) -> list["SnapshotNode"]:
        """Find all nodes in this subtree with the given tag."""
        return [node for node in self.walk() if node.tag == tag.lower()]


@dataclass
class StyleEntry:
    """Applied styles of one element, as produced by a styles-only capture."""

    selector: str
    styles: dict[str, str] = field(default_factory=dict)
    pseudo: dict[str, dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selector": self.selector,
            "styles": dict(self.styles),
            "pseudo": {state: dict(styles) for state, styles in self.pseudo.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StyleEntry":
        return cls(
            selector=data["selector"],
            styles=data.get("styles", {}),
            pseudo=data.get("pseudo", {}),
        )


@dataclass
class RuleRecord:
    """A stylesheet rule as held by the rule cache."""

    selector: str
    declarations: dict[str, str] = field(default_factory=dict)


@dataclass
class Snapshot:
    """A captured snapshot, as returned to callers and persisted to the store."""

    name: str
    type: SnapshotMode
    timestamp: str
    hash: str
    meta: dict[str, Any]
    options: dict[str, Any]
    data: Any = None
    path: str | None = None

    def to_dict(self, include_data: bool = True) -> dict[str, Any]:
        """Convert to the persisted JSON document.

        Args:
            include_data: Whether to include the payload. Hash-only storage
                policies persist the document without it.
        """
        result = {
            "name": self.name,
            "type": self.type.value,
            "timestamp": self.timestamp,
            "hash": self.hash,
            "meta": self.meta,
            "options": self.options,
        }
        if include_data:
            result["data"] = self.data
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """Create instance from dictionary."""
        return cls(
            name=data["name"],
            type=SnapshotMode(data["type"]),
            timestamp=data["timestamp"],
            hash=data["hash"],
            meta=data.get("meta", {}),
            options=data.get("options", {}),
            data=data.get("data"),
            path=data.get("path"),
        )

    def to_json(self) -> str:
        """Serialize snapshot to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "Snapshot":
        """Deserialize snapshot from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class DiffEntry:
    """One localized difference between two payloads."""

    path: str
    type: DiffType
    from_value: Any = None
    to_value: Any = None
    value: Any = None
    message: str | None = None
    baseline_hash: str | None = None
    actual_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation.

        Fields present depend on the entry type: changes carry ``from``/``to``,
        additions and removals carry ``value``, hash notices carry both hashes.
        """
        if self.type == DiffType.HASH_MISMATCH:
            return {
                "type": self.type.value,
                "message": self.message,
                "baseline": self.baseline_hash,
                "actual": self.actual_hash,
            }
        if self.type in (DiffType.ADDED, DiffType.REMOVED):
            return {"path": self.path, "type": self.type.value, "value": self.value}
        return {
            "path": self.path,
            "type": self.type.value,
            "from": self.from_value,
            "to": self.to_value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiffEntry":
        """Create instance from dictionary."""
        return cls(
            path=data.get("path", ""),
            type=DiffType(data["type"]),
            from_value=data.get("from"),
            to_value=data.get("to"),
            value=data.get("value"),
            message=data.get("message"),
            baseline_hash=data.get("baseline"),
            actual_hash=data.get("actual"),
        )


@dataclass
class ComparisonResult:
    """Result of comparing a fresh capture against the stored baseline."""

    status: ComparisonStatus
    mode: SnapshotMode
    storage: StorageMode
    match: bool
    baseline: dict[str, Any] | None = None
    actual: dict[str, Any] | None = None
    diff: list[DiffEntry] | None = None
    message: str | None = None
    hash: str | None = None

    @property
    def diff_count(self) -> int:
        return len(self.diff) if self.diff else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.message:
            result["message"] = self.message
        result.update({
            "mode": self.mode.value,
            "storage": self.storage.value,
            "match": self.match,
        })
        if self.hash:
            result["hash"] = self.hash
        result.update({
            "baseline": self.baseline,
            "actual": self.actual,
            "diffCount": self.diff_count,
            "diff": [entry.to_dict() for entry in self.diff] if self.diff is not None else None,
        })
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparisonResult":
        """Create instance from dictionary."""
        diff = data.get("diff")
        return cls(
            status=ComparisonStatus(data["status"]),
            mode=SnapshotMode(data["mode"]),
            storage=StorageMode(data["storage"]),
            match=data["match"],
            baseline=data.get("baseline"),
            actual=data.get("actual"),
            diff=[DiffEntry.from_dict(entry) for entry in diff] if diff is not None else None,
            message=data.get("message"),
            hash=data.get("hash"),
        )

    def get_changed_paths(self) -> list[str]:
        """Paths of all structural diff entries."""
        return [entry.path for entry in self.diff or [] if entry.type != DiffType.HASH_MISMATCH]

    def get_summary(self) -> str:
        """Generate a human-readable summary of the comparison result."""
        if self.status == ComparisonStatus.CREATED:
            return f"Baseline created for {self.mode.value} snapshot."
        if self.match:
            return f"{self.mode.value} snapshot matches baseline."
        return (
            f"{self.mode.value} snapshot differs from baseline: "
            f"{self.diff_count} change(s) ({self.storage.value} storage)."
        )
