"""Dot-path addressing inside value trees.

A field name like ``"address.city"`` addresses ``tree["address"]["city"]``.
A backslash escapes a literal dot or backslash, so ``"sku\\.legacy"``
addresses the single key ``"sku.legacy"``. Digit segments index into
lists that already have that position (``"tags.0"``).

Writes never mutate the tree they are given: they clone it first and
return the new tree.
"""

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any

from formstate.errors import FieldPathError
from formstate.tree.clone import deep_clone

logger = logging.getLogger(__name__)

_ESCAPE = "\\"
_SEPARATOR = "."


def split_path(path: str, nested: bool = True) -> list[str]:
    """Split a field name into key segments.

    Args:
        path: The field name.
        nested: If False, the whole name is a single literal key.

    Returns:
        List of segments (at least one).

    Raises:
        FieldPathError: If the name is not a non-empty string, has an
            empty segment, or ends with a dangling escape.
    """
    if not isinstance(path, str):
        raise FieldPathError(path, "field names must be strings")
    if path == "":
        raise FieldPathError(path, "field name is empty")
    if not nested:
        return [path]

    segments: list[str] = []
    current: list[str] = []
    chars = iter(path)

    for char in chars:
        if char == _ESCAPE:
            escaped = next(chars, None)
            if escaped is None:
                raise FieldPathError(path, "dangling escape at end of name")
            current.append(escaped)
        elif char == _SEPARATOR:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))

    if any(segment == "" for segment in segments):
        raise FieldPathError(path, "empty path segment")

    return segments


def escape_segment(segment: str) -> str:
    """Escape a single key so it survives :func:`split_path`."""
    return segment.replace(_ESCAPE, _ESCAPE * 2).replace(_SEPARATOR, _ESCAPE + _SEPARATOR)


def join_path(segments: list[str] | tuple[str, ...]) -> str:
    """Join key segments into a field name, escaping literal dots."""
    return _SEPARATOR.join(escape_segment(str(segment)) for segment in segments)


def is_nested_path(path: str) -> bool:
    """Whether a field name addresses more than one level."""
    return len(split_path(path)) > 1


def _is_index(container: Any, segment: str) -> bool:
    return (
        isinstance(container, list)
        and segment.isdigit()
        and int(segment) < len(container)
    )


def _lookup(container: Any, segment: str) -> tuple[bool, Any]:
    """Return (found, value) for one segment."""
    if isinstance(container, Mapping):
        if segment in container:
            return True, container[segment]
        return False, None
    if _is_index(container, segment):
        return True, container[int(segment)]
    return False, None


def _assign(container: dict | list, segment: str, value: Any) -> None:
    if isinstance(container, list):
        container[int(segment)] = value
    else:
        container[segment] = value


def _can_descend(child: Any, next_segment: str) -> bool:
    return isinstance(child, dict) or _is_index(child, next_segment)


def get_nested_value(
    tree: Any,
    path: str,
    nested: bool = True,
    default: Any = None,
) -> Any:
    """Read the value at ``path``.

    Args:
        tree: The value tree.
        path: Field name.
        nested: Whether dots separate levels.
        default: Returned when any segment is missing or a non-container
            is found before the last segment.

    Returns:
        The stored value, or ``default``.
    """
    current = tree
    for segment in split_path(path, nested):
        found, current = _lookup(current, segment)
        if not found:
            return default
    return current


def has_nested_value(tree: Any, path: str, nested: bool = True) -> bool:
    """Whether ``path`` resolves to a stored value (even ``None``)."""
    current = tree
    for segment in split_path(path, nested):
        found, current = _lookup(current, segment)
        if not found:
            return False
    return True


def set_nested_value(
    tree: Mapping[str, Any] | None,
    path: str,
    value: Any,
    nested: bool = True,
) -> dict[str, Any]:
    """Return a copy of ``tree`` with ``value`` stored at ``path``.

    Missing intermediate levels are created as dicts. An intermediate
    value that is neither a dict nor a list indexed by the next segment
    is replaced with an empty dict; the old value is lost.

    Args:
        tree: The value tree (``None`` is treated as empty).
        path: Field name.
        value: Value to store. It is stored as given, not copied.
        nested: Whether dots separate levels.

    Returns:
        The new tree.
    """
    new_tree = deep_clone(tree) if isinstance(tree, Mapping) else {}
    segments = split_path(path, nested)
    current: dict | list = new_tree

    for i, segment in enumerate(segments[:-1]):
        found, child = _lookup(current, segment)
        if not _can_descend(child, segments[i + 1]):
            if found and child is not None:
                logger.debug(
                    "Replacing non-mapping value at %r while writing %r",
                    join_path(segments[: i + 1]),
                    path,
                )
            child = {}
            _assign(current, segment, child)
        current = child

    _assign(current, segments[-1], value)
    return new_tree


def delete_nested_field(
    tree: Mapping[str, Any],
    path: str,
    nested: bool = True,
) -> dict[str, Any]:
    """Return a copy of ``tree`` without the value at ``path``.

    Missing paths are not an error; the copy is returned unchanged.
    """
    new_tree = deep_clone(tree)
    segments = split_path(path, nested)
    current: Any = new_tree

    for segment in segments[:-1]:
        found, current = _lookup(current, segment)
        if not found or not isinstance(current, (dict, list)):
            return new_tree

    last = segments[-1]
    if isinstance(current, dict):
        current.pop(last, None)
    elif _is_index(current, last):
        del current[int(last)]
    return new_tree


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality of two value trees.

    Walks mappings and lists with a work-list instead of recursion, so
    trees of any depth (and trees with cycles) can be compared.
    """
    stack: list[tuple[Any, Any]] = [(left, right)]
    seen: set[tuple[int, int]] = set()

    while stack:
        a, b = stack.pop()
        if a is b:
            continue

        if isinstance(a, Mapping) and isinstance(b, Mapping):
            pair = (id(a), id(b))
            if pair in seen:
                continue
            seen.add(pair)
            if len(a) != len(b) or any(key not in b for key in a):
                return False
            stack.extend((a[key], b[key]) for key in a)
        elif _is_sequence(a) and _is_sequence(b):
            if isinstance(a, list) != isinstance(b, list) or len(a) != len(b):
                return False
            pair = (id(a), id(b))
            if pair in seen:
                continue
            seen.add(pair)
            stack.extend(zip(a, b))
        elif isinstance(a, (Mapping, list, tuple)) or isinstance(b, (Mapping, list, tuple)):
            return False
        elif a != b:
            return False

    return True


def _child_keys(current: Any, initial: Any) -> list:
    if isinstance(current, list):
        return list(range(max(len(current), len(initial))))
    keys = list(current)
    keys.extend(key for key in initial if key not in current)
    return keys


def _child(container: Any, key: Any) -> tuple[bool, Any]:
    if isinstance(container, list):
        if key < len(container):
            return True, container[key]
        return False, None
    if key in container:
        return True, container[key]
    return False, None


def _walkable_pair(current: Any, initial: Any) -> bool:
    if isinstance(current, Mapping) and isinstance(initial, Mapping):
        return True
    return isinstance(current, list) and isinstance(initial, list)


def diff_trees(
    initial: Mapping[str, Any],
    current: Mapping[str, Any],
    nested: bool = True,
) -> dict[str, Any]:
    """Collect the values in ``current`` that differ from ``initial``.

    Args:
        initial: The baseline tree.
        current: The tree to compare.
        nested: If True, walk nested dicts and lists in parallel and key
            results by escaped dot-path (list positions as ``"tags.1"``).
            If False, compare top-level keys only.

    Returns:
        Mapping of field name to current value. Keys or positions missing
        from ``current`` are reported with ``None``.
    """
    changed: dict[str, Any] = {}

    if not nested:
        for key in _child_keys(current, initial):
            if (key in current) != (key in initial) or not values_equal(
                current.get(key), initial.get(key)
            ):
                changed[key] = current.get(key)
        return changed

    queue: deque[tuple[tuple[str, ...], Any, Any]] = deque([((), current, initial)])
    seen: set[tuple[int, int]] = set()

    while queue:
        prefix, current_node, initial_node = queue.popleft()
        pair = (id(current_node), id(initial_node))
        if pair in seen:
            continue
        seen.add(pair)

        for key in _child_keys(current_node, initial_node):
            path = prefix + (str(key),)
            in_current, current_value = _child(current_node, key)
            in_initial, initial_value = _child(initial_node, key)

            if in_current and in_initial and _walkable_pair(current_value, initial_value):
                queue.append((path, current_value, initial_value))
            elif in_current != in_initial or not values_equal(current_value, initial_value):
                changed[join_path(path)] = current_value

    return changed
