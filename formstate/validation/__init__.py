"""Field validators, the validator registry and the rule-based manager."""

from formstate.validation.manager import DEFAULT_MESSAGES, ValidationManager
from formstate.validation.models import (
    BusinessRules,
    FieldCheck,
    FieldRules,
    PasswordPolicy,
    RuleFailure,
    RuleSchema,
    SchemaCheck,
    ValidationResult,
)
from formstate.validation.schema import load_rule_schema, parse_rule_schema
from formstate.validation.validators import (
    FieldValidator,
    ValidatorFn,
    ValidatorKind,
    ValidatorRegistry,
    as_validator,
    async_validator,
    sync_validator,
)

__all__ = [
    "DEFAULT_MESSAGES",
    "BusinessRules",
    "FieldCheck",
    "FieldRules",
    "FieldValidator",
    "PasswordPolicy",
    "RuleFailure",
    "RuleSchema",
    "SchemaCheck",
    "ValidationManager",
    "ValidationResult",
    "ValidatorFn",
    "ValidatorKind",
    "ValidatorRegistry",
    "as_validator",
    "async_validator",
    "load_rule_schema",
    "parse_rule_schema",
    "sync_validator",
]
