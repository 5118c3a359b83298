"""Iterative deep clone for value trees.

Nested dicts and lists are copied with an explicit work-list, so the
depth of a tree is bounded by memory rather than the interpreter's
recursion limit. A visited map keyed by object identity keeps a shared
subtree (or a cycle) as a single object in the copy.
"""

from collections.abc import Mapping
from typing import Any


def _new_container(value: Any) -> dict | list:
    """Create an empty container of the same family as ``value``."""
    return {} if isinstance(value, Mapping) else []


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list))


def _copy_leaf(value: Any) -> Any:
    """Copy a non-container value.

    Scalars, strings, dates, decimals, compiled patterns and tuples are
    immutable and are returned as-is. Sets and bytearrays get a shallow
    copy. Any other object (file handles, uploads) is shared by reference.
    """
    if isinstance(value, (set, bytearray)):
        return type(value)(value)
    return value


def deep_clone(value: Any) -> Any:
    """Deep-copy a value tree without recursion.

    Args:
        value: Any value. Dicts (and other mappings) and lists are
            copied; mappings are copied into plain dicts.

    Returns:
        The copy. If the same container is reachable through two paths,
        both paths in the copy point to one cloned container.
    """
    if not _is_container(value):
        return _copy_leaf(value)

    root = _new_container(value)
    visited: dict[int, dict | list] = {id(value): root}
    stack: list[tuple[Any, dict | list]] = [(value, root)]

    while stack:
        original, copy = stack.pop()
        children = original.items() if isinstance(original, Mapping) else enumerate(original)

        for key, child in children:
            if _is_container(child):
                child_copy = visited.get(id(child))
                if child_copy is None:
                    child_copy = _new_container(child)
                    visited[id(child)] = child_copy
                    stack.append((child, child_copy))
            else:
                child_copy = _copy_leaf(child)

            if isinstance(copy, dict):
                copy[key] = child_copy
            else:
                copy.append(child_copy)

    return root
