"""Global formstate configuration.

Configuration lives in ``$FORMSTATE_HOME/config.yaml`` (default
``~/.config/formstate/config.yaml``) and has three optional sections:

    form_defaults:      # FormConfig settings
      debounce_ms: 500
    business_rules:     # BusinessRules settings
      product_code_pattern: "^[A-Z]{3}-[0-9]{4}$"
    messages:           # rule -> message template
      required: "Campo obligatorio"
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from formstate.engine.config import FormConfig
from formstate.engine.engine import FormStateEngine
from formstate.validation.models import BusinessRules

DEFAULT_HOME = Path("~/.config/formstate")


class GlobalConfig(BaseModel):
    """Parsed contents of config.yaml."""

    form_defaults: dict[str, Any] = Field(default_factory=dict)
    business_rules: dict[str, Any] = Field(default_factory=dict)
    messages: dict[str, str] = Field(default_factory=dict)


def get_formstate_home() -> Path:
    """Directory holding the global configuration."""
    env_home = os.environ.get("FORMSTATE_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return DEFAULT_HOME.expanduser()


def get_config_path() -> Path:
    return get_formstate_home() / "config.yaml"


def default_config_document() -> dict[str, Any]:
    """The document written by ``formstate init``."""
    return {
        "form_defaults": FormConfig().model_dump(),
        "business_rules": BusinessRules().model_dump(),
        "messages": {},
    }


def load_global_config(path: Path | str | None = None) -> GlobalConfig:
    """Load config.yaml.

    Args:
        path: Config file; defaults to ``get_config_path()``.

    Returns:
        The parsed config, or an empty one if the file does not exist.

    Raises:
        ValueError: If the file is not a YAML mapping.
    """
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        return GlobalConfig()

    with open(config_path) as f:
        document = yaml.safe_load(f) or {}

    if not isinstance(document, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return GlobalConfig.model_validate(document)


def get_default_form_config(path: Path | str | None = None) -> FormConfig:
    """FormConfig built from the ``form_defaults`` section."""
    return FormConfig.model_validate(load_global_config(path).form_defaults)


def create_engine(
    initial_values: Mapping[str, Any] | None = None,
    validators: Any = None,
    *,
    config_path: Path | str | None = None,
    **overrides: Any,
) -> FormStateEngine:
    """FormStateEngine configured from the ``form_defaults`` section.

    Keyword overrides win over the file, as with ``FormStateEngine``.
    """
    return FormStateEngine(
        initial_values,
        validators,
        get_default_form_config(config_path),
        **overrides,
    )


def get_business_rules(path: Path | str | None = None) -> BusinessRules:
    """BusinessRules built from the ``business_rules`` section."""
    return BusinessRules.model_validate(load_global_config(path).business_rules)


def get_message_overrides(path: Path | str | None = None) -> dict[str, str]:
    return dict(load_global_config(path).messages)
