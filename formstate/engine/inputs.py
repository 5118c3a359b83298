"""Input kinds and raw value normalisation."""

import logging
import math
from collections.abc import Iterable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class InputKind(str, Enum):
    """Kinds of input a value can come from."""

    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    SELECT = "select"
    SELECT_MULTIPLE = "select-multiple"
    TEXTAREA = "textarea"
    DATE = "date"
    TIME = "time"
    DATETIME_LOCAL = "datetime-local"
    COLOR = "color"
    RANGE = "range"
    URL = "url"
    TEL = "tel"
    SEARCH = "search"


NUMERIC_KINDS = frozenset({InputKind.NUMBER, InputKind.RANGE})


def coerce_kind(kind: InputKind | str) -> InputKind:
    """Map a kind name to InputKind; unknown names are treated as text."""
    if isinstance(kind, InputKind):
        return kind
    try:
        return InputKind(kind)
    except ValueError:
        logger.debug("Unknown input kind %r, treating as text", kind)
        return InputKind.TEXT


def parse_number(raw: Any) -> int | float | str:
    """Parse a numeric input.

    Returns:
        An int when the text is integral, a float otherwise, or ``""``
        when the input is empty or not a finite number. NaN is never
        returned.
    """
    if raw is None or isinstance(raw, bool):
        return ""
    if isinstance(raw, (int, float)):
        return raw if math.isfinite(raw) else ""

    text = str(raw).strip()
    if text == "":
        return ""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return ""
    return number if math.isfinite(number) else ""


def _as_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, (str, bytes, dict)):
        return [raw]
    if isinstance(raw, Iterable):
        return list(raw)
    return [raw]


def normalize_value(
    raw: Any,
    kind: InputKind | str = InputKind.TEXT,
    multiple: bool = False,
    trim: bool = True,
) -> Any:
    """Normalise a raw input value according to its kind.

    Args:
        raw: The value delivered by the input.
        kind: The input kind.
        multiple: Whether a select/file input allows several values.
        trim: Whether to strip whitespace from text values.

    Returns:
        ``bool`` for checkboxes, a number or ``""`` for numeric kinds, a
        list for multi-selects and multiple file inputs, the first file
        (or None) for single file inputs, and the (optionally trimmed)
        raw value otherwise.
    """
    kind = coerce_kind(kind)

    if kind is InputKind.CHECKBOX:
        return bool(raw)
    if kind in NUMERIC_KINDS:
        return parse_number(raw)
    if kind is InputKind.SELECT_MULTIPLE or (kind is InputKind.SELECT and multiple):
        return _as_list(raw)
    if kind is InputKind.FILE:
        files = _as_list(raw)
        if multiple:
            return files
        return files[0] if files else None
    if trim and isinstance(raw, str):
        return raw.strip()
    return raw
