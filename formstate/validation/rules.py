"""Built-in value checks used by the ValidationManager.

Every check has the signature ``(value, params, form_data) -> bool``.
Apart from ``required``, checks accept empty values (``None`` or ``""``)
so that optional fields only fail when something was entered.
"""

import re
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any
from urllib.parse import urlparse

from formstate.tree import get_nested_value
from formstate.validation.models import PasswordPolicy

RuleCheck = Callable[[Any, Any, Mapping[str, Any]], bool]

_INTEGER_RE = re.compile(r"^\d+$")
_DECIMAL_RE = re.compile(r"^\d+(\.\d+)?$")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def is_empty(value: Any) -> bool:
    """Whether a value counts as "not provided"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _blank(value: Any) -> bool:
    return value is None or value == ""


def to_number(value: Any) -> float | None:
    """Parse a number the way form inputs deliver it, or None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def parse_date(value: Any) -> date | datetime | None:
    """Parse an ISO date/datetime string, or pass dates through."""
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text)
        return date.fromisoformat(text)
    except ValueError:
        return None


def _compare_to_now(parsed: date | datetime) -> int:
    """-1 if ``parsed`` is in the past, 1 if in the future, 0 if now."""
    if isinstance(parsed, datetime):
        now = datetime.now(parsed.tzinfo) if parsed.tzinfo else datetime.now()
    else:
        now = date.today()
    if parsed < now:
        return -1
    if parsed > now:
        return 1
    return 0


def _length(value: Any) -> int:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    return len(str(value))


def check_required(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    return not is_empty(value)


def check_min_length(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    return _length(value) >= int(params)


def check_max_length(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    return _length(value) <= int(params)


def check_exact_length(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    return _length(value) == int(params)


def check_min(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    number = to_number(value)
    return number is not None and number >= float(params)


def check_max(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    number = to_number(value)
    return number is not None and number <= float(params)


def check_between(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    low, high = params
    number = to_number(value)
    return number is not None and float(low) <= number <= float(high)


def check_integer(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    if isinstance(value, bool):
        return False
    return bool(_INTEGER_RE.match(str(value)))


def check_decimal(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    if isinstance(value, bool):
        return False
    return bool(_DECIMAL_RE.match(str(value)))


def check_url(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def check_date(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    return parse_date(value) is not None


def check_future_date(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    parsed = parse_date(value)
    return parsed is not None and _compare_to_now(parsed) > 0


def check_past_date(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    parsed = parse_date(value)
    return parsed is not None and _compare_to_now(parsed) < 0


def check_pattern(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    pattern = params if isinstance(params, re.Pattern) else re.compile(params)
    return bool(pattern.search(str(value)))


def check_same_as(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    return value == get_nested_value(form_data, params)


def check_different_from(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    return value != get_nested_value(form_data, params)


def check_non_negative(value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
    if _blank(value):
        return True
    number = to_number(value)
    return number is not None and number >= 0


def matches(pattern: str, value: Any) -> bool:
    """Full-string regex test used by the configurable checks."""
    if _blank(value):
        return True
    return bool(re.match(pattern, str(value)))


def password_problems(password: str, policy: PasswordPolicy) -> list[str]:
    """List the ways ``password`` violates ``policy``."""
    problems: list[str] = []

    if len(password) < policy.min_length:
        problems.append(f"La contraseña debe tener al menos {policy.min_length} caracteres")
    if policy.require_uppercase and not re.search(r"[A-Z]", password):
        problems.append("La contraseña debe contener al menos una letra mayúscula")
    if policy.require_lowercase and not re.search(r"[a-z]", password):
        problems.append("La contraseña debe contener al menos una letra minúscula")
    if policy.require_number and not re.search(r"\d", password):
        problems.append("La contraseña debe contener al menos un número")
    if policy.require_special and not _SPECIAL_RE.search(password):
        problems.append("La contraseña debe contener al menos un carácter especial")

    return problems


def _is_number(params: Any) -> bool:
    return isinstance(params, (int, float)) and not isinstance(params, bool)


def _length_problem(params: Any) -> str | None:
    if isinstance(params, bool) or not isinstance(params, int) or params < 0:
        return "expected a non-negative integer"
    return None


def _number_problem(params: Any) -> str | None:
    if not _is_number(params):
        return "expected a number"
    return None


def _range_problem(params: Any) -> str | None:
    if (
        not isinstance(params, (list, tuple))
        or len(params) != 2
        or not all(_is_number(bound) for bound in params)
    ):
        return "expected a [low, high] pair of numbers"
    return None


def _pattern_problem(params: Any) -> str | None:
    if isinstance(params, re.Pattern):
        return None
    if not isinstance(params, str):
        return "expected a regular expression string"
    try:
        re.compile(params)
    except re.error as e:
        return f"invalid regular expression: {e}"
    return None


def _field_name_problem(params: Any) -> str | None:
    if not isinstance(params, str) or not params:
        return "expected a field name"
    return None


PARAM_CHECKS: dict[str, Callable[[Any], str | None]] = {
    "minLength": _length_problem,
    "maxLength": _length_problem,
    "exactLength": _length_problem,
    "min": _number_problem,
    "max": _number_problem,
    "between": _range_problem,
    "pattern": _pattern_problem,
    "sameAs": _field_name_problem,
    "differentFrom": _field_name_problem,
}
