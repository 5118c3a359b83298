"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import yaml

from formstate.validation import ValidationManager


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def manager() -> ValidationManager:
    """A ValidationManager with the default rules and messages."""
    return ValidationManager()


@pytest.fixture
def product_rules() -> dict:
    """Rule schema document for a product form."""
    return {
        "name": "product",
        "version": "1.0.0",
        "fields": {
            "code": {
                "rules": {"required": True, "productCode": True},
                "sanitize": "text",
                "label": "Código",
            },
            "name": {
                "rules": {"required": True, "minLength": 3, "maxLength": 100},
            },
            "price": {
                "rules": {"required": True, "decimal": True, "positivePrice": True},
                "messages": {"decimal": "Precio inválido"},
                "sanitize": "number",
            },
            "supplier.email": {
                "rules": {"email": True},
                "sanitize": "email",
            },
        },
    }


@pytest.fixture
def product_rules_path(tmp_path: Path, product_rules: dict) -> Path:
    """The product rule schema written to a YAML file."""
    path = tmp_path / "product.yaml"
    with open(path, "w") as f:
        yaml.dump(product_rules, f, sort_keys=False, allow_unicode=True)
    return path


@pytest.fixture
def formstate_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point FORMSTATE_HOME at a temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("FORMSTATE_HOME", str(home))
    return home
