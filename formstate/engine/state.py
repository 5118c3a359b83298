"""State snapshots and binding props exposed by the engine."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SubmissionState(BaseModel):
    """Submission lifecycle of a form."""

    model_config = ConfigDict(frozen=True)

    is_submitting: bool = False
    submit_count: int = Field(default=0, ge=0)


class InputProps(BaseModel):
    """Everything an input needs to bind to one field."""

    name: str
    value: Any = ""
    on_change: Callable[..., Any]
    on_blur: Callable[..., Any]
    error_flag: bool = False  # aria-invalid
    described_by: str | None = None  # aria-describedby
    extra: dict[str, Any] = Field(default_factory=dict)


class FieldProps(InputProps):
    """Input props plus the display state of a labelled field."""

    error: str = ""
    touched: bool = False
    valid: bool = False
    error_id: str | None = None
    helper_text: str | None = None
    label: str


class FormStatus(BaseModel):
    """Whole-form status snapshot."""

    values: dict[str, Any]
    errors: dict[str, str]
    touched: dict[str, bool]
    is_submitting: bool
    submit_count: int
    is_validating: bool
    is_valid: bool
    is_dirty: bool
    changed_values: dict[str, Any]
    field_count: int
