"""formstate: Form state container with pluggable field validation."""

__version__ = "0.1.0"

from formstate.config import create_engine
from formstate.engine import FormConfig, FormStateEngine, InputKind
from formstate.errors import (
    FieldPathError,
    FormStateError,
    RuleParamsError,
    RuleSchemaError,
    SubmissionFieldErrors,
    UnknownRuleError,
)
from formstate.tree import deep_clone, get_nested_value, set_nested_value
from formstate.validation import (
    FieldValidator,
    ValidationManager,
    ValidationResult,
    ValidatorRegistry,
    load_rule_schema,
)

__all__ = [
    "__version__",
    "FormConfig",
    "FormStateEngine",
    "create_engine",
    "InputKind",
    "FieldPathError",
    "FormStateError",
    "RuleParamsError",
    "RuleSchemaError",
    "SubmissionFieldErrors",
    "UnknownRuleError",
    "deep_clone",
    "get_nested_value",
    "set_nested_value",
    "FieldValidator",
    "ValidationManager",
    "ValidationResult",
    "ValidatorRegistry",
    "load_rule_schema",
]
