"""Form state engine.

Owns the value tree, error map, touched map and submission state of one
logical form. Every update replaces those structures instead of mutating
them, so a rendering layer can detect changes by identity.

Validation runs on asyncio: changes schedule a debounced validation per
field, blur validates immediately, and submit validates every registered
field. Each request bumps a per-field sequence number; a result is only
applied if no newer request for that field was issued and the engine has
not been closed.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from formstate.engine.config import FormConfig
from formstate.engine.inputs import InputKind, normalize_value
from formstate.engine.state import FieldProps, FormStatus, InputProps, SubmissionState
from formstate.engine.submission import extract_field_errors
from formstate.tree import (
    deep_clone,
    delete_nested_field,
    diff_trees,
    get_nested_value,
    set_nested_value,
    values_equal,
)
from formstate.validation.manager import DEFAULT_MESSAGE
from formstate.validation.models import ValidationResult
from formstate.validation.validators import FieldValidator, ValidatorFn, ValidatorRegistry

logger = logging.getLogger(__name__)

_UNSET: Any = object()

SubmitCallback = Callable[[dict[str, Any], "SubmitHelpers"], Any]
StateListener = Callable[["FormStateEngine"], None]


class SubmitHelpers:
    """Engine actions handed to a submit callback."""

    def __init__(self, engine: "FormStateEngine") -> None:
        self._engine = engine

    def reset_form(
        self,
        new_initial_values: Mapping[str, Any] | None = None,
        *,
        clear_errors: bool = True,
        clear_touched: bool = True,
    ) -> None:
        self._engine.reset_form(
            new_initial_values,
            clear_errors=clear_errors,
            clear_touched=clear_touched,
        )

    def set_errors(self, errors: Mapping[str, str]) -> None:
        self._engine.set_errors(errors)


def _prevent_default(event: Any) -> None:
    if event is None:
        return
    for attr in ("prevent_default", "preventDefault"):
        method = getattr(event, attr, None)
        if callable(method):
            method()
            return


class FormStateEngine:
    """State container for one form.

    Example:
        engine = FormStateEngine(
            {"name": "", "contact": {"email": ""}},
            {"contact.email": manager.field_validator({"required": True, "email": True})},
        )
        engine.handle_change("name", "  Tornillo 3/8 ")
        await engine.handle_blur("contact.email")
        submit = engine.handle_submit(save_product)
        await submit()
    """

    def __init__(
        self,
        initial_values: Mapping[str, Any] | None = None,
        validators: ValidatorRegistry | Mapping[str, FieldValidator | ValidatorFn] | None = None,
        config: FormConfig | None = None,
        *,
        on_first_error: Callable[[str], None] | None = None,
        **overrides: Any,
    ) -> None:
        """Create an engine.

        Args:
            initial_values: Initial value tree. Deep-copied; the caller's
                object is never touched again.
            validators: Field name -> validator (function or
                FieldValidator), or a registry to copy.
            config: Behaviour switches. Defaults to ``FormConfig()``.
            on_first_error: Called with the first invalid field after a
                failed submit, so the host UI can scroll to / focus it.
            **overrides: Individual FormConfig settings.
        """
        if initial_values is not None and not isinstance(initial_values, Mapping):
            raise TypeError(
                f"initial_values must be a mapping, got {type(initial_values).__name__}"
            )

        self.config = (config or FormConfig()).merged(**overrides)

        if isinstance(validators, ValidatorRegistry):
            validators = {name: validators.get(name) for name in validators}
        self.validators = ValidatorRegistry(validators)

        self.on_first_error = on_first_error
        self.first_error_field: str | None = None

        self._initial: dict[str, Any] = deep_clone(initial_values or {})
        self._values: dict[str, Any] = deep_clone(self._initial)
        self._errors: dict[str, str] = {}
        self._touched: dict[str, bool] = {}
        self._submission = SubmissionState()

        self._closed = False
        self._timers: dict[str, asyncio.Task] = {}
        self._sequence: dict[str, int] = {}
        self._validating = 0
        self._listeners: list[StateListener] = []

    def __repr__(self) -> str:
        return (
            f"FormStateEngine(fields={len(self._values)}, errors={len(self._errors)}, "
            f"validators={len(self.validators)}, closed={self._closed})"
        )

    # State

    @property
    def values(self) -> dict[str, Any]:
        """Current value tree. Read-only; replaced on every update."""
        return self._values

    @property
    def errors(self) -> dict[str, str]:
        """Current error map. Read-only; replaced on every update."""
        return self._errors

    @property
    def touched(self) -> dict[str, bool]:
        """Current touched map. Read-only; replaced on every update."""
        return self._touched

    @property
    def initial_values(self) -> dict[str, Any]:
        """A copy of the snapshot used for dirty comparisons."""
        return deep_clone(self._initial)

    @property
    def submission(self) -> SubmissionState:
        return self._submission

    @property
    def is_submitting(self) -> bool:
        return self._submission.is_submitting

    @property
    def submit_count(self) -> int:
        return self._submission.submit_count

    @property
    def is_validating(self) -> bool:
        return self._validating > 0

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def is_dirty(self) -> bool:
        return self.has_changes()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def status(self) -> FormStatus:
        """Snapshot of the whole form's state."""
        return FormStatus(
            values=self._values,
            errors=self._errors,
            touched=self._touched,
            is_submitting=self._submission.is_submitting,
            submit_count=self._submission.submit_count,
            is_validating=self.is_validating,
            is_valid=self.is_valid,
            is_dirty=self.has_changes(),
            changed_values=self.get_changed_values(),
            field_count=len(self._values),
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener(engine)`` after every state change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Form state listener %r failed", listener)

    def _commit(
        self,
        *,
        values: Any = _UNSET,
        errors: Any = _UNSET,
        touched: Any = _UNSET,
        submission: Any = _UNSET,
    ) -> None:
        if values is not _UNSET:
            self._values = values
        if errors is not _UNSET:
            self._errors = errors
        if touched is not _UNSET:
            self._touched = touched
        if submission is not _UNSET:
            self._submission = submission
        self._notify()

    # Paths

    def _read(self, values: Mapping[str, Any], field_name: str) -> Any:
        return get_nested_value(values, field_name, nested=self.config.allow_nested_fields)

    def _write(self, values: Mapping[str, Any], field_name: str, value: Any) -> dict[str, Any]:
        return set_nested_value(values, field_name, value, nested=self.config.allow_nested_fields)

    # Request bookkeeping

    def _next_sequence(self, field_name: str) -> int:
        sequence = self._sequence.get(field_name, 0) + 1
        self._sequence[field_name] = sequence
        return sequence

    def _is_current(self, field_name: str, sequence: int) -> bool:
        return not self._closed and self._sequence.get(field_name) == sequence

    def _cancel_timer(self, field_name: str) -> None:
        task = self._timers.pop(field_name, None)
        if task is not None and not task.done():
            task.cancel()

    def _cancel_all(self) -> None:
        for field_name in list(self._timers):
            self._cancel_timer(field_name)
        for field_name in self._sequence:
            self._sequence[field_name] += 1

    def _forget_timer(self, field_name: str, task: asyncio.Task) -> None:
        if self._timers.get(field_name) is task:
            del self._timers[field_name]

    def _set_validating(self, delta: int) -> None:
        self._validating += delta
        self._notify()

    # Validation

    async def validate_field(
        self,
        field_name: str,
        value: Any = _UNSET,
        all_values: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Run the validator registered for a field.

        Does not touch the error map.

        Args:
            field_name: The field to validate.
            value: Value to validate; read from ``all_values`` if omitted.
            all_values: Tree handed to the validator; defaults to the
                current values.

        Returns:
            The error message, or None if the value is valid or no
            validator is registered. A validator that raises yields the
            exception's message.
        """
        validator = self.validators.get(field_name)
        if validator is None:
            return None
        if all_values is None:
            all_values = self._values
        if value is _UNSET:
            value = self._read(all_values, field_name)

        try:
            return await validator.run(value, all_values)
        except Exception as e:
            logger.warning(
                "Validator %s for field %s raised %s: %s",
                validator.name,
                field_name,
                type(e).__name__,
                e,
            )
            return str(e) or DEFAULT_MESSAGE

    async def _validate_and_apply(self, field_name: str, sequence: int) -> None:
        values = self._values
        value = self._read(values, field_name)

        self._set_validating(1)
        try:
            error = await self.validate_field(field_name, value, values)
        finally:
            self._set_validating(-1)

        if not self._is_current(field_name, sequence):
            logger.debug("Discarding stale validation result for %s", field_name)
            return
        self.set_field_error(field_name, error)

    async def _debounced_validation(self, field_name: str, sequence: int) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        if not self._is_current(field_name, sequence):
            return
        await self._validate_and_apply(field_name, sequence)

    def _schedule_validation(self, field_name: str) -> asyncio.Task | None:
        """Replace any pending validation of ``field_name`` with a new one."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping debounced validation of %s", field_name)
            return None

        self._cancel_timer(field_name)
        sequence = self._next_sequence(field_name)
        task = loop.create_task(self._debounced_validation(field_name, sequence))
        self._timers[field_name] = task
        task.add_done_callback(partial(self._forget_timer, field_name))
        logger.debug(
            "Scheduled validation of %s in %sms (request %d)",
            field_name,
            self.config.debounce_ms,
            sequence,
        )
        return task

    async def validate_all(self, values: Mapping[str, Any] | None = None) -> ValidationResult:
        """Validate every field that has a validator.

        Pending debounced validations are cancelled. The error map is
        replaced by the result; a field changed while this runs keeps
        its newer state.

        Args:
            values: Tree to validate; defaults to the current values.

        Returns:
            ValidationResult with the non-empty messages.
        """
        snapshot = self._values if values is None else values
        field_names = self.validators.field_names
        sequences: dict[str, int] = {}
        errors: dict[str, str] = {}

        for field_name in field_names:
            self._cancel_timer(field_name)
            sequences[field_name] = self._next_sequence(field_name)

        self._set_validating(1)
        try:
            for field_name in field_names:
                value = self._read(snapshot, field_name)
                error = await self.validate_field(field_name, value, snapshot)
                if error:
                    errors[field_name] = error
        finally:
            self._set_validating(-1)

        if not self._closed:
            merged: dict[str, str] = {}
            for field_name in field_names:
                if self._sequence.get(field_name) == sequences[field_name]:
                    if field_name in errors:
                        merged[field_name] = errors[field_name]
                elif field_name in self._errors:
                    merged[field_name] = self._errors[field_name]
            self._commit(errors=merged)

        return ValidationResult(is_valid=not errors, errors=errors)

    async def wait_for_validation(self) -> None:
        """Wait until no debounced validation is pending."""
        while True:
            pending = [task for task in self._timers.values() if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # Input events

    def handle_change(
        self,
        field_name: str,
        raw_value: Any,
        input_kind: InputKind | str = InputKind.TEXT,
        *,
        multiple: bool = False,
    ) -> Any:
        """Store a value coming from an input.

        The field's error is cleared immediately; when validation on
        change is enabled a debounced validation is scheduled and
        overwrites the error once it resolves.

        Returns:
            The normalised value that was stored.
        """
        value = normalize_value(
            raw_value,
            input_kind,
            multiple=multiple,
            trim=self.config.trim_string_values,
        )
        values = self._write(self._values, field_name, value)
        errors = self._errors
        if field_name in errors:
            errors = {name: message for name, message in errors.items() if name != field_name}

        self._next_sequence(field_name)
        self._commit(values=values, errors=errors)

        if self.config.validate_on_change and field_name in self.validators:
            self._schedule_validation(field_name)
        return value

    async def handle_blur(self, field_name: str) -> str | None:
        """Mark a field touched, trim it, and validate it without debounce.

        Returns:
            The field's error after validation (None when valid).
        """
        values = self._values
        if self.config.auto_trim_on_blur:
            current = self._read(values, field_name)
            if isinstance(current, str) and current.strip() != current:
                values = self._write(values, field_name, current.strip())

        self._commit(values=values, touched={**self._touched, field_name: True})

        if self.config.validate_on_blur:
            self._cancel_timer(field_name)
            sequence = self._next_sequence(field_name)
            await self._validate_and_apply(field_name, sequence)
        return self._errors.get(field_name)

    # Submission

    def _signal_first_error(self, field_name: str | None) -> None:
        self.first_error_field = field_name
        if field_name is None or self.on_first_error is None:
            return
        try:
            self.on_first_error(field_name)
        except Exception:
            logger.exception("First-error handler failed for field %s", field_name)

    def _finish_submit(self) -> None:
        self._commit(
            submission=SubmissionState(
                is_submitting=False,
                submit_count=self._submission.submit_count,
            )
        )

    def handle_submit(self, on_submit: SubmitCallback) -> Callable[..., Any]:
        """Build the submit handler for a form.

        Args:
            on_submit: ``(values, helpers) -> result``, sync or async.
                ``values`` is a copy of the current tree; ``helpers``
                offers ``reset_form`` and ``set_errors``.

        Returns:
            An async ``submit(event=None)``. It returns the callback's
            result, or None when validation or the server rejected the
            values. Exceptions without field errors are re-raised.
        """

        async def submit(event: Any = None) -> Any:
            _prevent_default(event)

            touched = dict(self._touched)
            for key in self._values:
                touched[str(key)] = True
            for field_name in self.validators:
                touched[field_name] = True

            self.first_error_field = None
            self._commit(
                touched=touched,
                submission=SubmissionState(
                    is_submitting=True,
                    submit_count=self._submission.submit_count + 1,
                ),
            )

            try:
                if self.config.validate_on_submit:
                    result = await self.validate_all()
                    if not result.is_valid:
                        self._finish_submit()
                        self._signal_first_error(result.first_error_field)
                        return None

                try:
                    outcome = on_submit(deep_clone(self._values), SubmitHelpers(self))
                    if inspect.isawaitable(outcome):
                        outcome = await outcome
                except Exception as e:
                    field_errors = extract_field_errors(e)
                    self._finish_submit()
                    if not field_errors:
                        raise
                    logger.debug("Submission rejected for fields: %s", ", ".join(field_errors))
                    if not self._closed:
                        self._commit(errors={**self._errors, **field_errors})
                    self._signal_first_error(next(iter(field_errors)))
                    return None

                self._finish_submit()
                return outcome
            finally:
                if self._submission.is_submitting:
                    self._finish_submit()

        return submit

    # Programmatic updates

    def reset_form(
        self,
        new_initial_values: Mapping[str, Any] | None = None,
        *,
        clear_errors: bool = True,
        clear_touched: bool = True,
    ) -> None:
        """Restore the initial snapshot.

        Args:
            new_initial_values: Replacement snapshot; it also becomes the
                basis of later dirty comparisons.
            clear_errors: Clear the error map.
            clear_touched: Clear the touched map.

        ``submit_count`` is kept.
        """
        self._cancel_all()
        if new_initial_values is not None:
            self._initial = deep_clone(new_initial_values)

        self._commit(
            values=deep_clone(self._initial),
            errors={} if clear_errors else self._errors,
            touched={} if clear_touched else self._touched,
            submission=SubmissionState(
                is_submitting=False,
                submit_count=self._submission.submit_count,
            ),
        )

    def set_errors(self, errors: Mapping[str, str]) -> None:
        """Replace the error map. Empty messages are dropped."""
        self._commit(errors={str(name): message for name, message in errors.items() if message})

    def set_field_error(self, field_name: str, error: str | None) -> None:
        """Set or clear one field's error."""
        errors = {name: message for name, message in self._errors.items() if name != field_name}
        if error:
            errors[field_name] = error
        self._commit(errors=errors)

    def set_field_touched(self, field_name: str, touched: bool = True) -> None:
        self._commit(touched={**self._touched, field_name: touched})

    def set_field_value(
        self,
        field_name: str,
        value: Any,
        *,
        should_validate: bool = False,
    ) -> None:
        """Store a value without input normalisation."""
        values = self._write(self._values, field_name, value)
        self._next_sequence(field_name)
        self._commit(values=values)

        if should_validate and field_name in self.validators:
            self._schedule_validation(field_name)

    def set_values_batch(
        self,
        updates: Mapping[str, Any],
        *,
        should_validate: bool = False,
    ) -> None:
        """Store several values with a single state update."""
        values = self._values
        for field_name, value in updates.items():
            values = self._write(values, field_name, value)
            self._next_sequence(field_name)
        self._commit(values=values)

        if should_validate:
            for field_name in updates:
                if field_name in self.validators:
                    self._schedule_validation(field_name)

    def add_field(
        self,
        field_name: str,
        initial_value: Any = "",
        validator: FieldValidator | ValidatorFn | None = None,
        *,
        validate: bool = False,
    ) -> None:
        """Add a field (and optionally its validator) at runtime."""
        if validator is not None:
            self.validators.register(field_name, validator)
        self.set_field_value(field_name, initial_value, should_validate=validate)

    def remove_field(
        self,
        field_name: str,
        *,
        remove_validator: bool = True,
        clear_error: bool = True,
        clear_touched: bool = True,
    ) -> None:
        """Remove a field's value and, by default, its validator, error and touched flag."""
        self._cancel_timer(field_name)
        self._next_sequence(field_name)

        if remove_validator:
            self.validators.unregister(field_name)

        errors = self._errors
        if clear_error and field_name in errors:
            errors = {name: message for name, message in errors.items() if name != field_name}
        touched = self._touched
        if clear_touched and field_name in touched:
            touched = {name: flag for name, flag in touched.items() if name != field_name}

        self._commit(
            values=delete_nested_field(
                self._values,
                field_name,
                nested=self.config.allow_nested_fields,
            ),
            errors=errors,
            touched=touched,
        )

    # Dirty tracking

    def has_changes(self) -> bool:
        """Whether the values differ from the initial snapshot."""
        return not values_equal(self._values, self._initial)

    def get_changed_values(self) -> dict[str, Any]:
        """Values that differ from the initial snapshot, keyed by field name."""
        return diff_trees(self._initial, self._values, nested=self.config.allow_nested_fields)

    # Binding

    def _input_props(self, field_name: str, extra: dict[str, Any]) -> dict[str, Any]:
        value = self._read(self._values, field_name)
        error = self._errors.get(field_name, "")
        return {
            "name": field_name,
            "value": "" if value is None else value,
            "on_change": partial(self.handle_change, field_name),
            "on_blur": partial(self.handle_blur, field_name),
            "error_flag": bool(error),
            "described_by": f"{field_name}-error" if error else None,
            "extra": extra,
        }

    def get_input_props(self, field_name: str, **extra: Any) -> InputProps:
        """Props to bind an input to a field."""
        return InputProps(**self._input_props(field_name, extra))

    def get_field_props(
        self,
        field_name: str,
        label: str | None = None,
        helper_text: str | None = None,
        **extra: Any,
    ) -> FieldProps:
        """Input props plus error, touched and label for a whole field."""
        error = self._errors.get(field_name, "")
        touched = self._touched.get(field_name, False)
        return FieldProps(
            **self._input_props(field_name, extra),
            error=error,
            touched=touched,
            valid=not error and touched,
            error_id=f"{field_name}-error" if error else None,
            helper_text=helper_text,
            label=label or field_name,
        )

    # Teardown

    def close(self) -> None:
        """Tear the engine down; pending and in-flight validations are dropped."""
        if self._closed:
            return
        self._closed = True
        self._cancel_all()
        self._listeners.clear()

    async def __aenter__(self) -> "FormStateEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
