"""Value tree utilities: cloning and dot-path addressing."""

from formstate.tree.clone import deep_clone
from formstate.tree.paths import (
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

__all__ = [
    "deep_clone",
    "delete_nested_field",
    "diff_trees",
    "escape_segment",
    "get_nested_value",
    "has_nested_value",
    "is_nested_path",
    "join_path",
    "set_nested_value",
    "split_path",
    "values_equal",
]
