"""Tests for value tree cloning and dot-path addressing."""

import re
from datetime import date

import pytest

from formstate.errors import FieldPathError
from formstate.tree import (
    deep_clone,
    delete_nested_field,
    diff_trees,
    escape_segment,
    get_nested_value,
    has_nested_value,
    is_nested_path,
    join_path,
    set_nested_value,
    split_path,
    values_equal,
)


class TestDeepClone:
    """Tests for deep_clone."""

    def test_copies_nested_containers(self) -> None:
        """Test that nested dicts and lists are new objects."""
        tree = {"a": {"b": [1, {"c": 2}]}}
        clone = deep_clone(tree)

        assert clone == tree
        assert clone is not tree
        assert clone["a"] is not tree["a"]
        assert clone["a"]["b"] is not tree["a"]["b"]
        assert clone["a"]["b"][1] is not tree["a"]["b"][1]

    def test_mutating_clone_leaves_original(self) -> None:
        """Test that the clone is independent of the original."""
        tree = {"contact": {"email": "a@b.co"}}
        clone = deep_clone(tree)
        clone["contact"]["email"] = "x@y.co"

        assert tree["contact"]["email"] == "a@b.co"

    def test_shared_subtree_keeps_single_identity(self) -> None:
        """Test that an object reachable twice is cloned once."""
        shared = {"x": 1}
        tree = {"left": shared, "right": shared}
        clone = deep_clone(tree)

        assert clone["left"] is clone["right"]
        assert clone["left"] is not shared

    def test_shared_subtree_mutation_visible_through_both_paths(self) -> None:
        """Test that mutating a shared clone shows through its other path only."""
        shared = {"qty": 1}
        tree = {"line": shared, "summary": {"line": shared}}
        clone = deep_clone(tree)

        clone["line"]["qty"] = 5

        assert clone["summary"]["line"]["qty"] == 5
        assert tree["line"]["qty"] == 1
        assert tree["summary"]["line"]["qty"] == 1

    def test_cycle(self) -> None:
        """Test that a self-referencing tree is cloned without looping."""
        tree: dict = {"name": "root"}
        tree["self"] = tree
        clone = deep_clone(tree)

        assert clone["self"] is clone
        assert clone is not tree

    def test_deep_tree_does_not_hit_recursion_limit(self) -> None:
        """Test cloning a tree much deeper than the recursion limit."""
        tree: dict = {}
        node = tree
        for _ in range(5000):
            node["child"] = {}
            node = node["child"]
        node["leaf"] = True

        clone = deep_clone(tree)
        node = clone
        for _ in range(5000):
            node = node["child"]
        assert node == {"leaf": True}

    def test_immutables_pass_through(self) -> None:
        """Test that dates and compiled patterns are returned as-is."""
        when = date(2024, 1, 31)
        pattern = re.compile(r"^\d+$")
        clone = deep_clone({"when": when, "pattern": pattern})

        assert clone["when"] is when
        assert clone["pattern"] is pattern

    def test_sets_are_copied(self) -> None:
        """Test that sets get their own copy."""
        tags = {"a", "b"}
        clone = deep_clone({"tags": tags})

        assert clone["tags"] == tags
        assert clone["tags"] is not tags

    def test_scalar(self) -> None:
        """Test cloning a bare scalar."""
        assert deep_clone(5) == 5
        assert deep_clone(None) is None


class TestSplitPath:
    """Tests for split_path and friends."""

    def test_plain_and_nested(self) -> None:
        """Test splitting on dots."""
        assert split_path("name") == ["name"]
        assert split_path("contact.email") == ["contact", "email"]

    def test_escaped_dot(self) -> None:
        """Test that a backslash keeps a literal dot."""
        assert split_path("sku\\.legacy") == ["sku.legacy"]
        assert split_path("meta.sku\\.legacy") == ["meta", "sku.legacy"]

    def test_flat_mode_keeps_name(self) -> None:
        """Test that nested=False treats the name as one key."""
        assert split_path("contact.email", nested=False) == ["contact.email"]

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", "a\\"])
    def test_invalid_names(self, path: str) -> None:
        """Test that malformed names raise FieldPathError."""
        with pytest.raises(FieldPathError):
            split_path(path)

    def test_non_string_name(self) -> None:
        """Test that a non-string name raises FieldPathError (a ValueError)."""
        with pytest.raises(ValueError, match="must be strings"):
            split_path(3)  # type: ignore[arg-type]

    def test_join_escapes(self) -> None:
        """Test that join_path escapes literal dots."""
        assert escape_segment("a.b") == "a\\.b"
        assert join_path(["meta", "a.b"]) == "meta.a\\.b"
        assert split_path(join_path(["meta", "a.b"])) == ["meta", "a.b"]

    def test_is_nested_path(self) -> None:
        """Test nested path detection."""
        assert is_nested_path("a.b")
        assert not is_nested_path("a\\.b")


class TestGetNestedValue:
    """Tests for get_nested_value."""

    def test_reads_nested(self) -> None:
        """Test reading a nested value."""
        tree = {"contact": {"email": "a@b.co"}}
        assert get_nested_value(tree, "contact.email") == "a@b.co"

    def test_missing_segment_returns_default(self) -> None:
        """Test that a missing intermediate yields None."""
        assert get_nested_value({"a": {}}, "a.b.c") is None
        assert get_nested_value({"a": 5}, "a.b") is None
        assert get_nested_value({}, "a", default="") == ""

    def test_list_index(self) -> None:
        """Test digit segments index into lists."""
        tree = {"tags": ["x", "y"]}
        assert get_nested_value(tree, "tags.1") == "y"
        assert get_nested_value(tree, "tags.5") is None

    def test_flat_mode_reads_literal_key(self) -> None:
        """Test that nested=False reads a dotted key literally."""
        tree = {"contact.email": "flat", "contact": {"email": "nested"}}
        assert get_nested_value(tree, "contact.email", nested=False) == "flat"
        assert get_nested_value(tree, "contact.email") == "nested"

    def test_has_nested_value_with_none(self) -> None:
        """Test that a stored None still counts as present."""
        assert has_nested_value({"a": {"b": None}}, "a.b")
        assert not has_nested_value({"a": {}}, "a.b")


class TestSetNestedValue:
    """Tests for set_nested_value."""

    @pytest.mark.parametrize("path", ["a", "a.b", "a.b.c.d", "x.y\\.z"])
    def test_round_trip(self, path: str) -> None:
        """Test that a written value reads back at any depth."""
        value = {"nested": [1, 2]}
        tree = set_nested_value({"a": {"keep": True}}, path, value)

        assert get_nested_value(tree, path) is value

    def test_does_not_mutate_input(self) -> None:
        """Test that writes return a new tree."""
        tree = {"contact": {"email": ""}}
        new_tree = set_nested_value(tree, "contact.email", "a@b.co")

        assert new_tree == {"contact": {"email": "a@b.co"}}
        assert tree == {"contact": {"email": ""}}

    def test_creates_intermediates(self) -> None:
        """Test that missing levels are created as dicts."""
        assert set_nested_value({}, "a.b.c", 1) == {"a": {"b": {"c": 1}}}

    def test_replaces_scalar_intermediate(self) -> None:
        """Test that a scalar in the way is replaced by a dict."""
        assert set_nested_value({"a": 5}, "a.b", 1) == {"a": {"b": 1}}

    def test_list_index(self) -> None:
        """Test writing into an existing list position."""
        assert set_nested_value({"tags": ["x", "y"]}, "tags.0", "z") == {"tags": ["z", "y"]}

    def test_flat_mode(self) -> None:
        """Test that nested=False writes a literal dotted key."""
        assert set_nested_value({}, "a.b", 1, nested=False) == {"a.b": 1}

    def test_escaped_key(self) -> None:
        """Test writing a key containing a dot."""
        assert set_nested_value({}, "meta.sku\\.legacy", "X") == {"meta": {"sku.legacy": "X"}}

    def test_none_tree(self) -> None:
        """Test that None is treated as an empty tree."""
        assert set_nested_value(None, "a", 1) == {"a": 1}


class TestDeleteNestedField:
    """Tests for delete_nested_field."""

    def test_deletes_leaf(self) -> None:
        """Test deleting a nested key."""
        tree = {"a": {"b": 1, "c": 2}}
        assert delete_nested_field(tree, "a.b") == {"a": {"c": 2}}
        assert tree == {"a": {"b": 1, "c": 2}}

    def test_missing_path(self) -> None:
        """Test that deleting a missing path is a no-op."""
        assert delete_nested_field({"a": 1}, "x.y") == {"a": 1}


class TestDiffTrees:
    """Tests for diff_trees and values_equal."""

    def test_equal_trees(self) -> None:
        """Test that equal trees have no changes."""
        tree = {"a": {"b": [1, 2]}}
        assert values_equal(tree, deep_clone(tree))
        assert diff_trees(tree, deep_clone(tree)) == {}

    def test_nested_changes_keyed_by_path(self) -> None:
        """Test that nested changes are keyed by dot-path."""
        initial = {"name": "A", "contact": {"email": "", "phone": "1"}}
        current = {"name": "A", "contact": {"email": "a@b.co", "phone": "1"}}

        assert diff_trees(initial, current) == {"contact.email": "a@b.co"}

    def test_added_and_removed_leaves(self) -> None:
        """Test that leaves present on one side only are reported."""
        initial = {"a": 1, "gone": 2}
        current = {"a": 1, "new": 3}

        assert diff_trees(initial, current) == {"new": 3, "gone": None}

    def test_lists_walked_by_index(self) -> None:
        """Test that list changes are keyed by index path."""
        assert diff_trees({"tags": ["a", "b"]}, {"tags": ["a", "c"]}) == {"tags.1": "c"}
        assert diff_trees({"tags": ["a"]}, {"tags": ["a", "b"]}) == {"tags.1": "b"}
        assert diff_trees({"tags": ["a", "b"]}, {"tags": ["a"]}) == {"tags.1": None}

    def test_list_of_mappings(self) -> None:
        """Test that mappings inside lists are walked too."""
        initial = {"lines": [{"qty": 1, "sku": "TOR"}]}
        current = {"lines": [{"qty": 2, "sku": "TOR"}]}

        assert diff_trees(initial, current) == {"lines.0.qty": 2}

    def test_list_replaced_by_scalar(self) -> None:
        """Test that a container swapped for a scalar is one change."""
        assert diff_trees({"tags": ["a"]}, {"tags": ""}) == {"tags": ""}

    def test_values_equal_types(self) -> None:
        """Test that list and tuple or mapping and scalar never compare equal."""
        assert not values_equal([1], (1,))
        assert not values_equal({"a": 1}, {"a": 1, "b": 2})
        assert not values_equal({"a": [1, 2]}, {"a": [1, 3]})
        assert not values_equal({"a": {}}, {"a": ""})
        assert values_equal({"a": (1, [2])}, {"a": (1, [2])})

    def test_values_equal_deep_tree(self) -> None:
        """Test comparing trees much deeper than the recursion limit."""
        left: dict = {}
        node = left
        for _ in range(5000):
            node["child"] = [{}]
            node = node["child"][0]
        node["leaf"] = True
        right = deep_clone(left)

        assert values_equal(left, right)

        node = right
        for _ in range(5000):
            node = node["child"][0]
        node["leaf"] = False

        assert not values_equal(left, right)

    def test_values_equal_cycles(self) -> None:
        """Test that self-referencing trees compare without looping."""
        left: dict = {"name": "root"}
        left["self"] = left
        right = deep_clone(left)

        assert values_equal(left, right)
        right["name"] = "other"
        assert not values_equal(left, right)


    def test_shallow_mode(self) -> None:
        """Test that nested=False reports top-level keys only."""
        initial = {"contact": {"email": ""}}
        current = {"contact": {"email": "a@b.co"}}

        assert diff_trees(initial, current, nested=False) == {"contact": {"email": "a@b.co"}}

    def test_dotted_key_is_escaped(self) -> None:
        """Test that keys containing dots come back escaped."""
        assert diff_trees({"a.b": 1}, {"a.b": 2}) == {"a\\.b": 2}
