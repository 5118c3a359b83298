"""Rule-based validation manager.

Holds a registry of named checks (``required``, ``email``, ``minLength``,
...) and their message templates, validates values and whole records
against declarative rule schemas, and turns those schemas into
per-field validators for the form engine.

One manager is created per application and passed to whatever needs it;
there is no module-level instance.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from formstate.errors import RuleParamsError, UnknownRuleError
from formstate.tree import get_nested_value
from formstate.validation import rules as checks
from formstate.validation.models import (
    BusinessRules,
    FieldCheck,
    RuleFailure,
    RuleSchema,
    SchemaCheck,
)
from formstate.validation.rules import RuleCheck
from formstate.validation.validators import FieldValidator, ValidatorKind

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Error de validación"

DEFAULT_MESSAGES: dict[str, str] = {
    "required": "Este campo es requerido",
    "email": "Ingrese un email válido",
    "phone": "Ingrese un teléfono válido",
    "minLength": "Debe tener al menos {0} caracteres",
    "maxLength": "No debe exceder los {0} caracteres",
    "exactLength": "Debe tener exactamente {0} caracteres",
    "min": "El valor mínimo es {0}",
    "max": "El valor máximo es {0}",
    "between": "Debe estar entre {0} y {1}",
    "integer": "Debe ser un número entero",
    "decimal": "Debe ser un número decimal",
    "url": "Ingrese una URL válida",
    "date": "Ingrese una fecha válida",
    "futureDate": "La fecha debe ser futura",
    "pastDate": "La fecha debe ser pasada",
    "pattern": "El formato no es válido",
    "sameAs": "Los valores no coinciden",
    "differentFrom": "Los valores deben ser diferentes",
    "strongPassword": "La contraseña no cumple con los requisitos de seguridad",
    "productCode": "El código no tiene un formato válido",
    "positiveStock": "El stock no puede ser negativo",
    "positivePrice": "El precio no puede ser negativo",
}


def _rule_enabled(params: Any) -> bool:
    """``{"required": false}`` switches a rule off."""
    return params is not False and params is not None


class ValidationManager:
    """Registry of named validation rules and their messages."""

    def __init__(
        self,
        business_rules: BusinessRules | None = None,
        messages: Mapping[str, str] | None = None,
    ) -> None:
        """Create a manager with the default rules registered.

        Args:
            business_rules: Patterns and password policy for the
                configurable checks. Defaults to ``BusinessRules()``.
            messages: Message templates overriding the defaults.
        """
        self.business_rules = business_rules or BusinessRules()
        self._validators: dict[str, RuleCheck] = {}
        self._messages: dict[str, str] = {}

        self._param_checks = dict(checks.PARAM_CHECKS)

        self._register_default_validators()
        for rule, message in DEFAULT_MESSAGES.items():
            self.register_message(rule, message)
        for rule, message in (messages or {}).items():
            self.register_message(rule, message)

    def _register_default_validators(self) -> None:
        self.register_validator("required", checks.check_required)
        self.register_validator("email", self._check_email)
        self.register_validator("phone", self._check_phone)
        self.register_validator("minLength", checks.check_min_length)
        self.register_validator("maxLength", checks.check_max_length)
        self.register_validator("exactLength", checks.check_exact_length)
        self.register_validator("min", checks.check_min)
        self.register_validator("max", checks.check_max)
        self.register_validator("between", checks.check_between)
        self.register_validator("integer", checks.check_integer)
        self.register_validator("decimal", checks.check_decimal)
        self.register_validator("url", checks.check_url)
        self.register_validator("date", checks.check_date)
        self.register_validator("futureDate", checks.check_future_date)
        self.register_validator("pastDate", checks.check_past_date)
        self.register_validator("pattern", checks.check_pattern)
        self.register_validator("sameAs", checks.check_same_as)
        self.register_validator("differentFrom", checks.check_different_from)
        self.register_validator("strongPassword", self._check_strong_password)
        self.register_validator("productCode", self._check_product_code)
        self.register_validator("positiveStock", checks.check_non_negative)
        self.register_validator("positivePrice", checks.check_non_negative)

    def _check_email(self, value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
        return checks.matches(self.business_rules.email_pattern, value)

    def _check_phone(self, value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
        return checks.matches(self.business_rules.phone_pattern, value)

    def _check_product_code(self, value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
        return checks.matches(self.business_rules.product_code_pattern, value)

    def _check_strong_password(self, value: Any, params: Any, form_data: Mapping[str, Any]) -> bool:
        if value is None or value == "":
            return True
        return not checks.password_problems(str(value), self.business_rules.password)

    # Registry

    def register_validator(self, name: str, check: RuleCheck) -> None:
        """Register (or replace) a named check ``(value, params, form_data) -> bool``."""
        if name in self._validators:
            logger.debug("Replacing validation rule %s", name)
            # Parameter shapes only describe the built-in checks.
            self._param_checks.pop(name, None)
        self._validators[name] = check

    def register_message(self, rule: str, message: str) -> None:
        """Register (or replace) the message template for a rule."""
        self._messages[rule] = message

    def create_custom_validator(
        self,
        name: str,
        check: RuleCheck,
        message: str = DEFAULT_MESSAGE,
    ) -> None:
        """Register a check and its message in one call."""
        self.register_validator(name, check)
        self.register_message(name, message)

    def has_rule(self, name: str) -> bool:
        return name in self._validators

    def get_rule(self, name: str) -> RuleCheck:
        """Return a registered check.

        Raises:
            UnknownRuleError: If no check has that name.
        """
        try:
            return self._validators[name]
        except KeyError:
            raise UnknownRuleError(name) from None

    @property
    def rule_names(self) -> list[str]:
        return list(self._validators)

    def unknown_rules(self, schema: RuleSchema | Mapping[str, Mapping[str, Any]]) -> list[str]:
        """Rule names used by a schema that are not registered."""
        unknown: list[str] = []
        for field_rules in self._rule_map(schema).values():
            for rule in field_rules:
                if rule not in self._validators and rule not in unknown:
                    unknown.append(rule)
        return unknown

    def param_problem(self, rule: str, params: Any) -> str | None:
        """Why ``params`` cannot drive ``rule``, or None if they can.

        Only built-in rules with parameters are checked; disabled rules
        always pass.
        """
        check = self._param_checks.get(rule)
        if check is None or not _rule_enabled(params):
            return None
        return check(params)

    def invalid_params(self, schema: RuleSchema | Mapping[str, Mapping[str, Any]]) -> list[str]:
        """``"field.rule: reason"`` for every rule given unusable parameters."""
        problems: list[str] = []
        for field_name, field_rules in self._rule_map(schema).items():
            for rule, params in field_rules.items():
                problem = self.param_problem(rule, params)
                if problem:
                    problems.append(f"{field_name}.{rule}: {problem}")
        return problems

    # Messages

    def get_message(
        self,
        rule: str,
        params: Any = None,
        custom_messages: Mapping[str, str] | None = None,
    ) -> str:
        """Render the message for a failed rule.

        ``{0}``, ``{1}``... are replaced by the rule's params (a list
        fills each placeholder; a scalar fills ``{0}``). A custom message
        for the rule wins over the registered template.
        """
        if custom_messages and rule in custom_messages:
            return custom_messages[rule]

        message = self._messages.get(rule, DEFAULT_MESSAGE)
        if isinstance(params, (list, tuple)):
            for index, param in enumerate(params):
                message = message.replace(f"{{{index}}}", str(param))
        elif params is not True and params is not None:
            message = message.replace("{0}", str(params))
        return message

    # Validation

    def validate_value(
        self,
        value: Any,
        rules: Mapping[str, Any],
        form_data: Mapping[str, Any] | None = None,
        messages: Mapping[str, str] | None = None,
    ) -> FieldCheck:
        """Run a set of named rules against one value.

        Args:
            value: The value to check.
            rules: ``{rule_name: params}``. A rule whose params are
                ``False`` or ``None`` is skipped.
            form_data: The whole record, for cross-field rules.
            messages: Per-rule message overrides for this field.

        Returns:
            FieldCheck listing every failing rule in declaration order.

        Raises:
            UnknownRuleError: If a rule name is not registered.
        """
        form_data = form_data or {}
        failures: list[RuleFailure] = []

        for rule, params in rules.items():
            if not _rule_enabled(params):
                continue
            check = self.get_rule(rule)
            if not check(value, params, form_data):
                failures.append(
                    RuleFailure(
                        rule=rule,
                        message=self.get_message(rule, params, messages),
                        params=params.pattern if isinstance(params, re.Pattern) else params,
                    )
                )

        return FieldCheck(valid=not failures, errors=failures, value=value)

    def validate_with_schema(
        self,
        data: Mapping[str, Any],
        schema: RuleSchema | Mapping[str, Mapping[str, Any]],
    ) -> SchemaCheck:
        """Validate a record against a rule schema.

        Field names in the schema may be dot-paths into nested data.
        """
        errors: dict[str, list[RuleFailure]] = {}
        messages = self._message_map(schema)

        for field_name, field_rules in self._rule_map(schema).items():
            value = get_nested_value(data, field_name)
            result = self.validate_value(value, field_rules, data, messages.get(field_name))
            if not result.valid:
                errors[field_name] = result.errors

        return SchemaCheck(valid=not errors, errors=errors, data=dict(data))

    # Engine integration

    def field_validator(
        self,
        rules: Mapping[str, Any],
        messages: Mapping[str, str] | None = None,
    ) -> FieldValidator:
        """Build an engine validator that reports the first failing rule.

        Raises:
            UnknownRuleError: If a rule name is not registered.
            RuleParamsError: If a built-in rule gets unusable parameters.
        """
        for rule, params in rules.items():
            self.get_rule(rule)
            problem = self.param_problem(rule, params)
            if problem:
                raise RuleParamsError(rule, params, problem)
        frozen_rules = dict(rules)
        frozen_messages = dict(messages or {})

        def validate(value: Any, all_values: dict[str, Any]) -> str | None:
            return self.validate_value(value, frozen_rules, all_values, frozen_messages).first_message

        return FieldValidator(
            validate,
            ValidatorKind.SYNC,
            name="rules:" + ",".join(frozen_rules),
        )

    def build_validators(
        self,
        schema: RuleSchema | Mapping[str, Mapping[str, Any]],
    ) -> dict[str, FieldValidator]:
        """Build ``{field_name: FieldValidator}`` for a FormStateEngine."""
        messages = self._message_map(schema)
        return {
            field_name: self.field_validator(field_rules, messages.get(field_name))
            for field_name, field_rules in self._rule_map(schema).items()
        }

    # Sanitising

    def sanitize(self, value: Any, kind: str = "text") -> str:
        """Clean raw user input according to its kind.

        Kinds: ``html`` strips tags, ``email`` lower-cases and trims,
        ``number`` keeps digits and the first dot, ``integer`` keeps
        digits, ``phone`` keeps digits and ``+-() ``, ``url`` adds an
        ``https://`` scheme when missing; anything else is trimmed.
        """
        if value is None:
            return ""
        text = str(value)

        if kind == "html":
            return re.sub(r"<[^>]*>", "", text)
        if kind == "email":
            return text.lower().strip()
        if kind == "number":
            text = re.sub(r"[^\d.]", "", text)
            whole, dot, rest = text.partition(".")
            return whole + dot + rest.replace(".", "")
        if kind == "integer":
            return re.sub(r"\D", "", text)
        if kind == "phone":
            return re.sub(r"[^\d+\-\s()]", "", text)
        if kind == "url":
            if not text.startswith(("http://", "https://")):
                return "https://" + text
            return text
        return text.strip()

    def sanitize_object(
        self,
        data: Mapping[str, Any],
        schema: RuleSchema | Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Sanitise every top-level value of a record.

        Args:
            data: The record.
            schema: ``{field: kind}`` or a RuleSchema whose fields declare
                ``sanitize``. Fields without a kind are trimmed as text.
        """
        if isinstance(schema, RuleSchema):
            kinds = schema.sanitize_map()
        else:
            kinds = dict(schema or {})
        return {key: self.sanitize(value, kinds.get(key, "text")) for key, value in data.items()}

    # Helpers

    @staticmethod
    def _rule_map(schema: RuleSchema | Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
        if isinstance(schema, RuleSchema):
            return schema.rule_map()
        return {name: dict(field_rules) for name, field_rules in schema.items()}

    @staticmethod
    def _message_map(schema: RuleSchema | Mapping[str, Any]) -> dict[str, dict[str, str]]:
        if isinstance(schema, RuleSchema):
            return {name: field.messages for name, field in schema.fields.items() if field.messages}
        return {}
