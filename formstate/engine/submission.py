"""Recognising server-side field errors in submission failures.

A submit callback usually talks to an HTTP API. When the server rejects
the payload per field, the client exception carries the errors in one of
a few conventional places; anything else is an unexpected failure that
the engine re-raises.
"""

from collections.abc import Mapping
from typing import Any


def _get(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return getattr(container, key, None)


def normalize_field_errors(payload: Any) -> dict[str, str]:
    """Turn a ``{field: message | [messages]}`` payload into an error map.

    Non-mapping payloads and empty messages are ignored; list-valued
    messages keep their first entry.
    """
    if not isinstance(payload, Mapping):
        return {}

    errors: dict[str, str] = {}
    for field_name, message in payload.items():
        if isinstance(message, (list, tuple)):
            message = message[0] if message else None
        if message:
            errors[str(field_name)] = str(message)
    return errors


def _response_data(response: Any) -> Any:
    data = _get(response, "data")
    if data is not None:
        return data

    json_method = getattr(response, "json", None)
    if callable(json_method):
        try:
            return json_method()
        except ValueError:
            return None
    return None


def extract_field_errors(exc: BaseException) -> dict[str, str]:
    """Find field errors carried by a submission exception.

    Looked up, in order: ``exc.field_errors``,
    ``exc.response.data["errors"]`` and ``exc.response.json()["errors"]``.

    Returns:
        The error map, empty when the exception carries none.
    """
    errors = normalize_field_errors(getattr(exc, "field_errors", None))
    if errors:
        return errors

    response = getattr(exc, "response", None)
    if response is None:
        return {}

    data = _response_data(response)
    if data is None:
        return {}
    return normalize_field_errors(_get(data, "errors"))
