"""Pydantic models for validation results and rule configuration."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ValidationResult(BaseModel):
    """Result of validating every registered field of a form."""

    is_valid: bool
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def error_count(self) -> int:
        """Number of fields with an error."""
        return len(self.errors)

    @property
    def first_error_field(self) -> str | None:
        """The first field (in validation order) that failed."""
        return next(iter(self.errors), None)

    def __bool__(self) -> bool:
        return self.is_valid


class RuleFailure(BaseModel):
    """A single named rule that rejected a value."""

    rule: str
    message: str
    params: Any = None


class FieldCheck(BaseModel):
    """Result of running a set of named rules against one value."""

    valid: bool
    errors: list[RuleFailure] = Field(default_factory=list)
    value: Any = None

    @property
    def first_message(self) -> str | None:
        """Message of the first failing rule."""
        return self.errors[0].message if self.errors else None


class SchemaCheck(BaseModel):
    """Result of validating a whole record against a rule schema."""

    valid: bool
    errors: dict[str, list[RuleFailure]] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)

    def messages(self) -> dict[str, str]:
        """First message per failing field, in the engine's error-map shape."""
        return {name: failures[0].message for name, failures in self.errors.items() if failures}


class PasswordPolicy(BaseModel):
    """Requirements for the ``strongPassword`` rule."""

    min_length: int = Field(default=8, ge=1)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_number: bool = True
    require_special: bool = True


class BusinessRules(BaseModel):
    """Caller-supplied business rules used by the built-in checks."""

    model_config = ConfigDict(extra="forbid")

    product_code_pattern: str = r"^[A-Za-z0-9\-_]{3,50}$"
    email_pattern: str = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
    phone_pattern: str = r"^[\+]?[(]?[0-9]{3}[)]?[-\s\.]?[0-9]{3}[-\s\.]?[0-9]{4,6}$"
    password: PasswordPolicy = Field(default_factory=PasswordPolicy)


class FieldRules(BaseModel):
    """Rules, messages and sanitising for one field of a rule schema."""

    model_config = ConfigDict(extra="forbid")

    rules: dict[str, Any] = Field(default_factory=dict)
    messages: dict[str, str] = Field(default_factory=dict)
    sanitize: str | None = None
    label: str | None = None


class RuleSchema(BaseModel):
    """A named set of field rules, usually loaded from YAML or JSON."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    version: str | None = None
    description: str | None = None
    fields: dict[str, FieldRules] = Field(default_factory=dict)

    def rule_map(self) -> dict[str, dict[str, Any]]:
        """Plain ``{field: {rule: params}}`` mapping."""
        return {name: dict(field.rules) for name, field in self.fields.items()}

    def sanitize_map(self) -> dict[str, str]:
        """``{field: kind}`` for fields that declare a sanitiser."""
        return {name: field.sanitize for name, field in self.fields.items() if field.sanitize}

    def label_map(self) -> dict[str, str]:
        """``{field: label}`` for fields that declare a display label."""
        return {name: field.label for name, field in self.fields.items() if field.label}
