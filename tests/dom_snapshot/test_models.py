"""Tests for dom_snapshot/models.py."""

import dataclasses
import json

import pytest

from src.dom_snapshot.models import (
    DEFAULT_IGNORE_TAGS,
    CaptureOptions,
    ComparisonResult,
    ComparisonStatus,
    DiffEntry,
    DiffType,
    Snapshot,
    SnapshotMode,
    SnapshotNode,
    StorageMode,
    utc_timestamp,
)


class TestCaptureOptions:
    """Tests for CaptureOptions defaults and override semantics."""

    def test_defaults(self):
        """Test the default option values."""
        options = CaptureOptions()
        assert options.root == "body"
        assert options.depth is None
        assert options.include_pseudo is True
        assert options.include_box is True
        assert options.include_text is True
        assert options.pseudo_states == ("hover", "active", "focus", "focus-within", "disabled", "checked")
        assert options.ignore_attrs == ("data-v-", "data-reactid", "data-gtm")
        assert options.ignore_tags == DEFAULT_IGNORE_TAGS
        assert options.ignore_selectors == ()
        assert options.ignore_hidden is True

    def test_options_are_immutable(self):
        """Test options cannot be changed in place."""
        options = CaptureOptions()
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.depth = 3

    def test_overrides_accept_camel_and_snake_case(self):
        """Test both persisted and field names are accepted."""
        options = CaptureOptions.from_overrides({"includeBox": False, "ignore_hidden": False, "depth": 2})
        assert options.include_box is False
        assert options.ignore_hidden is False
        assert options.depth == 2

    def test_override_replaces_whole_list(self):
        """Test overriding a list option replaces the default list."""
        options = CaptureOptions.from_overrides({"ignoreTags": ["footer"]})
        assert options.ignore_tags == ("footer",)

    def test_overrides_start_from_base(self):
        """Test overrides apply over the given base, key by key."""
        base = CaptureOptions(depth=1, include_text=False)
        options = CaptureOptions.from_overrides({"depth": 4}, base=base)
        assert options.depth == 4
        assert options.include_text is False

    def test_infinite_depth_is_unbounded(self):
        """Test an infinite depth maps to None."""
        options = CaptureOptions.from_overrides({"depth": float("inf")})
        assert options.depth is None

    def test_unknown_option_rejected(self):
        """Test unknown option names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown capture option"):
            CaptureOptions.from_overrides({"ignoreComments": True})

    def test_string_for_list_option_rejected(self):
        """Test a bare string for a list option raises ValueError."""
        with pytest.raises(ValueError):
            CaptureOptions.from_overrides({"ignoreTags": "script"})

    def test_non_number_depth_rejected(self):
        """Test a depth given as text raises ValueError, not TypeError."""
        with pytest.raises(ValueError, match="expects a number"):
            CaptureOptions.from_overrides({"depth": "3"})
        with pytest.raises(ValueError, match="expects a number"):
            CaptureOptions.from_overrides({"depth": True})

    def test_lists_stored_as_tuples(self):
        """Test sequence options built from lists are normalized to tuples."""
        options = CaptureOptions(ignore_tags=["script"], ignore_selectors=[".ad"])
        assert options.ignore_tags == ("script",)
        assert options.ignore_selectors == (".ad",)
        assert hash(options.ignore_tags)
        assert options.with_ignored_selector(".promo").ignore_selectors == (".ad", ".promo")

    def test_string_for_list_field_rejected(self):
        """Test the constructor rejects a bare string for a list option."""
        with pytest.raises(ValueError, match="expects a list"):
            CaptureOptions(ignore_tags="script")

    def test_with_ignored_selector(self):
        """Test adding an ignore selector returns a new instance."""
        options = CaptureOptions()
        updated = options.with_ignored_selector(".ad")
        assert updated.ignore_selectors == (".ad",)
        assert options.ignore_selectors == ()

    def test_to_dict_uses_persisted_names(self):
        """Test serialization uses camelCase keys and JSON lists."""
        data = CaptureOptions(depth=3).to_dict()
        assert data["depth"] == 3
        assert data["ignoreTags"] == list(DEFAULT_IGNORE_TAGS)
        assert data["includePseudo"] is True
        assert "ignore_tags" not in data
        json.dumps(data)

    def test_from_dict_restores_options(self):
        """Test a serialized options document restores the same options."""
        options = CaptureOptions(depth=2, ignore_selectors=(".ad",))
        assert CaptureOptions.from_dict(options.to_dict()) == options


class TestSnapshotNode:
    """Tests for SnapshotNode serialization."""

    def test_empty_optional_fields_omitted(self):
        """Test text, pseudo and children are omitted when empty."""
        node = SnapshotNode(tag="div", attrs={"class": "a"}, box={"x": 0, "y": 0, "w": 10, "h": 10}, pseudo={})
        assert node.to_dict() == {
            "tag": "div",
            "attrs": {"class": "a"},
            "box": {"x": 0, "y": 0, "w": 10, "h": 10},
        }

    def test_styles_kept_when_empty(self):
        """Test an empty styles map is still serialized when styles were captured."""
        node = SnapshotNode(tag="p", styles={})
        assert node.to_dict()["styles"] == {}

    def test_from_dict_with_children(self):
        """Test nested nodes are restored."""
        data = {
            "tag": "ul",
            "attrs": {},
            "children": [{"tag": "li", "attrs": {}, "text": "One"}, {"tag": "li", "attrs": {}, "text": "Two"}],
        }
        node = SnapshotNode.from_dict(data)
        assert [child.text for child in node.children] == ["One", "Two"]
        assert node.to_dict() == data

    def test_find_all(self):
        """Test find_all walks the whole subtree."""
        node = SnapshotNode(
            tag="ul",
            children=[SnapshotNode(tag="li"), SnapshotNode(tag="li", children=[SnapshotNode(tag="a")])],
        )
        assert len(node.find_all("li")) == 2
        assert len(node.find_all("A")) == 1
        assert [n.tag for n in node.walk()] == ["ul", "li", "li", "a"]


class TestSnapshot:
    """Tests for Snapshot serialization."""

    @pytest.fixture
    def snapshot(self):
        return Snapshot(
            name="homepage",
            type=SnapshotMode.FULL,
            timestamp="2024-01-01T00:00:00.000Z",
            hash="0123456789abcdef",
            meta={"url": "https://example.com/", "title": "Example", "viewport": {"width": 1280, "height": 720}},
            options=CaptureOptions().to_dict(),
            data={"tag": "body", "attrs": {}},
        )

    def test_to_dict_with_data(self, snapshot):
        """Test the full document includes the payload."""
        data = snapshot.to_dict()
        assert data["type"] == "full"
        assert data["data"] == {"tag": "body", "attrs": {}}
        assert "path" not in data

    def test_to_dict_hash_only(self, snapshot):
        """Test hash-only documents leave out the payload."""
        data = snapshot.to_dict(include_data=False)
        assert "data" not in data
        assert data["hash"] == "0123456789abcdef"

    def test_json_roundtrip(self, snapshot):
        """Test to_json / from_json restore the snapshot."""
        restored = Snapshot.from_json(snapshot.to_json())
        assert restored == snapshot


class TestDiffEntry:
    """Tests for DiffEntry serialization shapes."""

    def test_value_change_shape(self):
        entry = DiffEntry(path="children.0.text", type=DiffType.VALUE_CHANGE, from_value="Hello", to_value="Bye")
        assert entry.to_dict() == {"path": "children.0.text", "type": "value_change", "from": "Hello", "to": "Bye"}

    def test_added_shape(self):
        entry = DiffEntry(path="attrs.role", type=DiffType.ADDED, value="banner")
        assert entry.to_dict() == {"path": "attrs.role", "type": "added", "value": "banner"}

    def test_hash_mismatch_shape(self):
        entry = DiffEntry(
            path="",
            type=DiffType.HASH_MISMATCH,
            message="Baseline contains hash only.",
            baseline_hash="aaaa",
            actual_hash="bbbb",
        )
        assert entry.to_dict() == {
            "type": "hash_mismatch",
            "message": "Baseline contains hash only.",
            "baseline": "aaaa",
            "actual": "bbbb",
        }
        assert DiffEntry.from_dict(entry.to_dict()) == entry


class TestComparisonResult:
    """Tests for ComparisonResult."""

    def test_created_result_dict(self):
        """Test a created result serializes message, hash and a null diff."""
        result = ComparisonResult(
            status=ComparisonStatus.CREATED,
            message="Baseline created",
            mode=SnapshotMode.DOM,
            storage=StorageMode.HASH,
            match=True,
            hash="abc",
            baseline={"hash": "abc", "timestamp": "t"},
            actual={"hash": "abc", "timestamp": "t"},
        )
        data = result.to_dict()
        assert list(data) == [
            "status", "message", "mode", "storage", "match", "hash", "baseline", "actual", "diffCount", "diff",
        ]
        assert data["diff"] is None
        assert data["diffCount"] == 0

    def test_mismatch_result(self):
        """Test diff count, changed paths and summary of a mismatch."""
        result = ComparisonResult(
            status=ComparisonStatus.MISMATCH,
            mode=SnapshotMode.FULL,
            storage=StorageMode.FULL,
            match=False,
            diff=[
                DiffEntry(path="text", type=DiffType.VALUE_CHANGE, from_value="a", to_value="b"),
                DiffEntry(path="children.1", type=DiffType.REMOVED, value={"tag": "p"}),
            ],
        )
        assert result.diff_count == 2
        assert result.get_changed_paths() == ["text", "children.1"]
        assert "2 change(s)" in result.get_summary()
        assert ComparisonResult.from_dict(result.to_dict()) == result


def test_utc_timestamp_format():
    """Test timestamps are UTC ISO-8601 with milliseconds."""
    timestamp = utc_timestamp()
    assert timestamp.endswith("Z")
    assert len(timestamp) == len("2024-01-01T00:00:00.000Z")
