"""Per-field validator functions and the registry that owns them.

A validator receives ``(value, all_values)`` and returns an error message
or ``None``. It may be a plain function or a coroutine function; each is
wrapped in a :class:`FieldValidator` tagged with its kind so the engine
never has to guess what a callable returns.
"""

import inspect
from collections.abc import Awaitable, Callable, Iterator, Mapping
from enum import Enum
from typing import Any, Union

from formstate.errors import FieldPathError

SyncValidatorFn = Callable[[Any, dict[str, Any]], Union[str, None]]
AsyncValidatorFn = Callable[[Any, dict[str, Any]], Awaitable[Union[str, None]]]
ValidatorFn = Union[SyncValidatorFn, AsyncValidatorFn]


class ValidatorKind(str, Enum):
    """How a validator delivers its result."""

    SYNC = "sync"  # returns str | None
    ASYNC = "async"  # returns an awaitable of str | None


class FieldValidator:
    """A validator function tagged with its kind."""

    def __init__(
        self,
        fn: ValidatorFn,
        kind: ValidatorKind | None = None,
        name: str | None = None,
    ) -> None:
        """Wrap a validator function.

        Args:
            fn: The function ``(value, all_values) -> str | None``.
            kind: Explicit kind. Detected from ``fn`` when omitted.
            name: Display name, defaults to the function's name.
        """
        if not callable(fn):
            raise TypeError(f"Validator must be callable, got {type(fn).__name__}")
        self.fn = fn
        if kind is None:
            kind = ValidatorKind.ASYNC if inspect.iscoroutinefunction(fn) else ValidatorKind.SYNC
        self.kind = kind
        self.name = name or getattr(fn, "__name__", type(fn).__name__)

    @property
    def is_async(self) -> bool:
        return self.kind is ValidatorKind.ASYNC

    async def run(self, value: Any, all_values: dict[str, Any]) -> str | None:
        """Run the validator and normalise its result.

        Exceptions raised by the function propagate to the caller.

        Returns:
            The error message, or ``None`` when the value is valid.
        """
        result = self.fn(value, all_values)
        if inspect.isawaitable(result):
            result = await result
        if not result:
            return None
        return result if isinstance(result, str) else str(result)

    def __repr__(self) -> str:
        return f"FieldValidator({self.name!r}, kind={self.kind.value})"


def sync_validator(fn: SyncValidatorFn) -> FieldValidator:
    """Tag a function as a synchronous validator."""
    return FieldValidator(fn, ValidatorKind.SYNC)


def async_validator(fn: AsyncValidatorFn) -> FieldValidator:
    """Tag a function as an asynchronous validator."""
    return FieldValidator(fn, ValidatorKind.ASYNC)


def as_validator(validator: FieldValidator | ValidatorFn) -> FieldValidator:
    """Coerce a function or FieldValidator into a FieldValidator."""
    if isinstance(validator, FieldValidator):
        return validator
    return FieldValidator(validator)


def _check_field_name(field_name: Any) -> str:
    if not isinstance(field_name, str):
        raise FieldPathError(field_name, "field names must be strings")
    if not field_name:
        raise FieldPathError(field_name, "field name is empty")
    return field_name


class ValidatorRegistry:
    """Mutable mapping of field name to validator, owned by one engine."""

    def __init__(
        self,
        validators: Mapping[str, FieldValidator | ValidatorFn] | None = None,
    ) -> None:
        self._validators: dict[str, FieldValidator] = {}
        for field_name, validator in (validators or {}).items():
            self.register(field_name, validator)

    def register(
        self,
        field_name: str,
        validator: FieldValidator | ValidatorFn,
    ) -> FieldValidator:
        """Register (or replace) the validator for a field.

        Returns:
            The stored FieldValidator.
        """
        wrapped = as_validator(validator)
        self._validators[_check_field_name(field_name)] = wrapped
        return wrapped

    def unregister(self, field_name: str) -> bool:
        """Remove a field's validator.

        Returns:
            True if a validator was removed, False if none was registered.
        """
        return self._validators.pop(field_name, None) is not None

    def get(self, field_name: str) -> FieldValidator | None:
        return self._validators.get(field_name)

    @property
    def field_names(self) -> list[str]:
        """Registered field names, in registration order."""
        return list(self._validators)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._validators

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._validators))

    def __len__(self) -> int:
        return len(self._validators)
