"""Content hashing and structural diffing of snapshot payloads.

Payloads are plain JSON values. Hashes are for fast equality only, never for
integrity. The diff is the sole mechanism for localizing a mismatch: it is a
deterministic, side-effect-free walk of the union of keys at every level,
with sequences compared index by index.
"""

import hashlib
import json
from typing import Any

from .models import DiffEntry, DiffType, Snapshot

HASH_LENGTH = 16


def canonical_json(payload: Any) -> str:
    """Serialize a payload so equal structures always produce equal text."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_payload(payload: Any) -> str:
    """Fixed-width hex digest of a payload.

    Args:
        payload: JSON-safe value (mappings, sequences, scalars, None)

    Returns:
        First 16 hex characters of the SHA-256 of the canonical serialization
    """
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()[:HASH_LENGTH]


def json_type(value: Any) -> str:
    """Name of a value's JSON type, with null, arrays and objects all "object"."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None or isinstance(value, (dict, list, tuple)):
        return "object"
    return type(value).__name__


def _keys(value: dict | list | tuple) -> list[str]:
    if isinstance(value, dict):
        return [str(key) for key in value]
    return [str(index) for index in range(len(value))]


def _child(value: dict | list | tuple, key: str) -> Any:
    if isinstance(value, dict):
        return value[key]
    return value[int(key)]


def generate_diff(baseline: Any, actual: Any, path: str = "") -> list[DiffEntry]:
    """Recursively compare two payloads.

    Keys are visited in baseline order followed by keys only present in
    ``actual``. Reordered sequences show up as per-index changes, not moves.

    Args:
        baseline: Reference payload
        actual: Payload under test
        path: Dotted path prefix of this level

    Returns:
        Ordered list of DiffEntry; empty when the payloads are equal
    """
    baseline_type = json_type(baseline)
    actual_type = json_type(actual)
    if baseline_type != actual_type:
        return [DiffEntry(path=path, type=DiffType.TYPE_CHANGE, from_value=baseline_type, to_value=actual_type)]

    if baseline is None or actual is None or baseline_type != "object":
        if baseline != actual:
            return [DiffEntry(path=path, type=DiffType.VALUE_CHANGE, from_value=baseline, to_value=actual)]
        return []

    baseline_keys = _keys(baseline)
    actual_keys = _keys(actual)
    known = set(baseline_keys)
    union = baseline_keys + [key for key in actual_keys if key not in known]
    present = set(actual_keys)

    diffs: list[DiffEntry] = []
    for key in union:
        key_path = f"{path}.{key}" if path else key
        if key not in known:
            diffs.append(DiffEntry(path=key_path, type=DiffType.ADDED, value=_child(actual, key)))
        elif key not in present:
            diffs.append(DiffEntry(path=key_path, type=DiffType.REMOVED, value=_child(baseline, key)))
        else:
            diffs.extend(generate_diff(_child(baseline, key), _child(actual, key), key_path))
    return diffs


def compare_snapshots(baseline: Snapshot, current: Snapshot) -> dict[str, Any]:
    """Compare two in-memory snapshots by recomputed hash and deep diff."""
    hash1 = hash_payload(baseline.data)
    hash2 = hash_payload(current.data)
    match = hash1 == hash2
    return {
        "match": match,
        "hash1": hash1,
        "hash2": hash2,
        "baseline": {"timestamp": baseline.timestamp, "url": baseline.meta.get("url")},
        "current": {"timestamp": current.timestamp, "url": current.meta.get("url")},
        "diffs": [] if match else [entry.to_dict() for entry in generate_diff(baseline.data, current.data)],
    }
