"""Tests for dom_snapshot/store.py."""

import json

import pytest

from src.dom_snapshot.models import StoreRole
from src.dom_snapshot.store import (
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotNotFoundError,
    snapshot_filename,
)


def test_snapshot_filename():
    assert snapshot_filename("homepage", "full") == "homepage.full.json"
    assert snapshot_filename("homepage", "full", "diff") == "homepage.full.diff.json"


class TestFileSnapshotStore:
    """Tests for the JSON file store."""

    @pytest.fixture
    def store(self, tmp_path):
        return FileSnapshotStore(
            str(tmp_path / "baseline"),
            str(tmp_path / "actual"),
            str(tmp_path / "diff"),
        )

    def test_directories_created(self, store, tmp_path):
        assert (tmp_path / "baseline").is_dir()
        assert (tmp_path / "actual").is_dir()
        assert (tmp_path / "diff").is_dir()

    def test_put_and_get(self, store, tmp_path):
        location = store.put(StoreRole.BASELINE, "homepage", "dom", {"hash": "abc", "name": "homepage"})

        assert location == str(tmp_path / "baseline" / "homepage.dom.json")
        assert store.exists(StoreRole.BASELINE, "homepage", "dom")
        assert not store.exists(StoreRole.ACTUAL, "homepage", "dom")
        assert store.get(StoreRole.BASELINE, "homepage", "dom") == {"hash": "abc", "name": "homepage"}

    def test_pretty_printed(self, store, tmp_path):
        store.put(StoreRole.DIFF, "homepage", "full", {"changes": []}, suffix="diff")
        text = (tmp_path / "diff" / "homepage.full.diff.json").read_text(encoding="utf-8")
        assert text == json.dumps({"changes": []}, indent=2)

    def test_put_overwrites(self, store):
        store.put(StoreRole.ACTUAL, "homepage", "dom", {"hash": "one"})
        store.put(StoreRole.ACTUAL, "homepage", "dom", {"hash": "two"})
        assert store.get(StoreRole.ACTUAL, "homepage", "dom") == {"hash": "two"}

    def test_missing_document(self, store):
        with pytest.raises(SnapshotNotFoundError):
            store.get(StoreRole.BASELINE, "missing", "full")

    def test_role_accepts_string(self, store):
        store.put("actual", "homepage", "styles", {"hash": "abc"})
        assert store.exists(StoreRole.ACTUAL, "homepage", "styles")


class TestMemorySnapshotStore:
    """Tests for the in-memory store."""

    def test_location_and_keys(self):
        store = MemorySnapshotStore()
        location = store.put(StoreRole.BASELINE, "homepage", "full", {"hash": "abc"})
        assert location == "memory://baseline/homepage.full.json"
        assert store.keys() == ["baseline/homepage.full.json"]

    def test_documents_are_copied(self):
        store = MemorySnapshotStore()
        document = {"data": {"tag": "body"}}
        store.put(StoreRole.ACTUAL, "homepage", "dom", document)
        document["data"]["tag"] = "div"

        stored = store.get(StoreRole.ACTUAL, "homepage", "dom")
        assert stored["data"]["tag"] == "body"
        stored["data"]["tag"] = "main"
        assert store.get(StoreRole.ACTUAL, "homepage", "dom")["data"]["tag"] == "body"

    def test_missing_document(self):
        store = MemorySnapshotStore()
        assert not store.exists(StoreRole.DIFF, "homepage", "dom", "actual")
        with pytest.raises(SnapshotNotFoundError):
            store.get(StoreRole.DIFF, "homepage", "dom", "actual")
