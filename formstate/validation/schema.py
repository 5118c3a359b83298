"""Loading rule schemas from YAML or JSON files."""

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from formstate.errors import RuleSchemaError
from formstate.validation.models import RuleSchema

RULE_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "form_rules.schema.json"


def load_json_schema(schema_path: Path | str | None = None) -> dict[str, Any]:
    """Load the JSON Schema that rule files must satisfy."""
    with open(schema_path or RULE_SCHEMA_PATH) as f:
        return json.load(f)


def _read_document(path: Path) -> Any:
    with open(path) as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def parse_rule_schema(
    document: Any,
    schema_path: Path | str | None = None,
    source: str = "<memory>",
) -> RuleSchema:
    """Validate a parsed document and build a RuleSchema.

    Args:
        document: Parsed YAML/JSON content.
        schema_path: Optional override for the JSON Schema file.
        source: Name used in error messages.

    Raises:
        RuleSchemaError: If the document does not satisfy the schema.
    """
    try:
        jsonschema.validate(document, load_json_schema(schema_path))
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise RuleSchemaError(f"Rule schema {source} invalid at {location}: {e.message}") from e

    try:
        return RuleSchema.model_validate(document)
    except ValidationError as e:
        raise RuleSchemaError(f"Rule schema {source} invalid: {e}") from e


def load_rule_schema(
    path: Path | str,
    schema_path: Path | str | None = None,
) -> RuleSchema:
    """Load and validate a rule schema file.

    Files ending in ``.json`` are parsed as JSON; anything else as YAML.

    Raises:
        RuleSchemaError: If the file is missing, unparsable or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise RuleSchemaError(f"Rule schema not found: {path}")

    try:
        document = _read_document(path)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RuleSchemaError(f"Could not parse rule schema {path}: {e}") from e

    return parse_rule_schema(document, schema_path=schema_path, source=str(path))
