"""Form state engine.

Holds the value tree, errors, touched flags and submission state of one
form, and exposes the binding props a UI layer renders from.
"""

from formstate.engine.config import FormConfig
from formstate.engine.engine import FormStateEngine, SubmitHelpers
from formstate.engine.inputs import InputKind, normalize_value, parse_number
from formstate.engine.state import FieldProps, FormStatus, InputProps, SubmissionState
from formstate.engine.submission import extract_field_errors, normalize_field_errors

__all__ = [
    # Engine
    "FormStateEngine",
    "SubmitHelpers",
    "FormConfig",
    # Inputs
    "InputKind",
    "normalize_value",
    "parse_number",
    # State
    "FieldProps",
    "FormStatus",
    "InputProps",
    "SubmissionState",
    # Submission
    "extract_field_errors",
    "normalize_field_errors",
]
