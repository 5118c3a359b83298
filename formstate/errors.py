"""Exceptions raised by formstate."""

from typing import Any


class FormStateError(Exception):
    """Base class for formstate errors."""

    pass


class FieldPathError(FormStateError, ValueError):
    """Raised when a field name cannot be used as a path."""

    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid field name {path!r}: {reason}")


class SubmissionFieldErrors(FormStateError):
    """Raised by submit callbacks to report per-field errors.

    The engine merges ``field_errors`` into its error map instead of
    propagating the exception.
    """

    def __init__(self, field_errors: dict[str, str], message: str | None = None) -> None:
        self.field_errors = dict(field_errors)
        super().__init__(message or f"Submission rejected for fields: {', '.join(self.field_errors)}")


class RuleSchemaError(FormStateError):
    """Raised when a rule schema fails to load or validate."""

    pass


class UnknownRuleError(FormStateError, KeyError):
    """Raised when a named validation rule is not registered."""

    def __init__(self, rule: str) -> None:
        self.rule = rule
        super().__init__(f"No validation rule registered with name: {rule}")

    def __str__(self) -> str:
        return self.args[0]


class RuleParamsError(FormStateError, ValueError):
    """Raised when a rule is given parameters it cannot use."""

    def __init__(self, rule: str, params: Any, reason: str) -> None:
        self.rule = rule
        self.params = params
        self.reason = reason
        super().__init__(f"Invalid parameters for rule {rule}: {params!r} ({reason})")
