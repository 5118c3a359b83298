"""Tests for the formstate command line."""

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from formstate import __version__
from formstate.cli import app

runner = CliRunner()


class TestVersionAndInit:
    """Tests for --version and init."""

    def test_version(self) -> None:
        """Test printing the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_writes_config(self, formstate_home: Path) -> None:
        """Test that init creates config.yaml."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        config = yaml.safe_load((formstate_home / "config.yaml").read_text())
        assert config["form_defaults"]["debounce_ms"] == 300
        assert "product_code_pattern" in config["business_rules"]

    def test_init_refuses_overwrite(self, formstate_home: Path) -> None:
        """Test that init needs --force to overwrite."""
        assert runner.invoke(app, ["init"]).exit_code == 0

        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

        assert runner.invoke(app, ["init", "--force"]).exit_code == 0


class TestCheckRules:
    """Tests for check-rules."""

    def test_valid_schema(self, formstate_home: Path, product_rules_path: Path) -> None:
        """Test a valid rule schema."""
        result = runner.invoke(app, ["check-rules", str(product_rules_path)])

        assert result.exit_code == 0
        assert "Valid" in result.output

    def test_unknown_rule(self, formstate_home: Path, tmp_path: Path) -> None:
        """Test a schema that uses an unregistered rule."""
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.dump({"fields": {"code": {"rules": {"shouting": True}}}}))

        result = runner.invoke(app, ["check-rules", str(path)])

        assert result.exit_code == 1
        assert "shouting" in result.output

    def test_invalid_schema(self, formstate_home: Path, tmp_path: Path) -> None:
        """Test a schema that fails JSON Schema validation."""
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.dump({"name": "no fields"}))

        result = runner.invoke(app, ["check-rules", str(path)])

        assert result.exit_code == 1
        assert "Invalid" in result.output

    def test_bad_rule_params(self, formstate_home: Path, tmp_path: Path) -> None:
        """Test that unusable rule parameters fail the check."""
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.dump({"fields": {"name": {"rules": {"minLength": "abc"}}}}))

        result = runner.invoke(app, ["check-rules", str(path)])

        assert result.exit_code == 1
        assert "name.minLength" in result.output


class TestValidate:
    """Tests for validate."""

    def test_all_valid(self, formstate_home: Path, product_rules_path: Path, tmp_path: Path) -> None:
        """Test records that all pass."""
        data = tmp_path / "products.jsonl"
        data.write_text(
            json.dumps({"code": "TOR-001", "name": "Tornillo", "price": "1.50"})
            + "\n"
            + json.dumps({"code": "TUE-002", "name": "Tuerca", "price": "0.75"})
            + "\n"
        )

        result = runner.invoke(app, ["validate", str(data), "--rules", str(product_rules_path)])

        assert result.exit_code == 0
        assert "Records: 2" in result.output

    def test_invalid_records_and_report(
        self, formstate_home: Path, product_rules_path: Path, tmp_path: Path
    ) -> None:
        """Test that invalid records fail the command and land in the report."""
        data = tmp_path / "products.json"
        data.write_text(
            json.dumps(
                [
                    {"code": "TOR-001", "name": "Tornillo", "price": "1.50"},
                    {"code": "X", "name": "Tu", "price": "-1"},
                ]
            )
        )
        report = tmp_path / "report.jsonl"

        result = runner.invoke(
            app,
            ["validate", str(data), "--rules", str(product_rules_path), "--report", str(report)],
        )

        assert result.exit_code == 1
        assert "Invalid" in result.output
        assert "Código" in result.output
        lines = [json.loads(line) for line in report.read_text().splitlines()]
        assert [line["valid"] for line in lines] == [True, False]
        assert lines[1]["errors"] == {
            "code": "El código no tiene un formato válido",
            "name": "Debe tener al menos 3 caracteres",
            "price": "Precio inválido",
        }

    def test_message_overrides_from_config(
        self, formstate_home: Path, product_rules_path: Path, tmp_path: Path
    ) -> None:
        """Test that config.yaml messages are used."""
        formstate_home.mkdir(parents=True)
        (formstate_home / "config.yaml").write_text(
            yaml.dump({"messages": {"required": "Obligatorio"}})
        )
        data = tmp_path / "products.json"
        data.write_text(json.dumps({"name": "Tornillo", "price": "1"}))
        report = tmp_path / "report.jsonl"

        runner.invoke(
            app,
            ["validate", str(data), "--rules", str(product_rules_path), "--report", str(report)],
        )

        line = json.loads(report.read_text())
        assert line["errors"] == {"code": "Obligatorio"}

    def test_missing_data_file(self, formstate_home: Path, product_rules_path: Path) -> None:
        """Test a missing data file."""
        result = runner.invoke(app, ["validate", "missing.json", "--rules", str(product_rules_path)])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_bad_rule_params(self, formstate_home: Path, tmp_path: Path) -> None:
        """Test that unusable rule parameters stop the run cleanly."""
        rules = tmp_path / "rules.yaml"
        rules.write_text(yaml.dump({"fields": {"qty": {"rules": {"between": 5}}}}))
        data = tmp_path / "data.json"
        data.write_text(json.dumps({"qty": 3}))

        result = runner.invoke(app, ["validate", str(data), "--rules", str(rules)])

        assert result.exit_code == 1
        assert not isinstance(result.exception, TypeError)
        assert "qty.between" in result.output


class TestDiff:
    """Tests for diff."""

    def test_flat_diff(self, tmp_path: Path) -> None:
        """Test dot-path keys for nested changes."""
        before = tmp_path / "before.json"
        after = tmp_path / "after.json"
        before.write_text(json.dumps({"name": "A", "contact": {"email": ""}}))
        after.write_text(json.dumps({"name": "A", "contact": {"email": "a@b.co"}}))

        result = runner.invoke(app, ["diff", str(before), str(after)])

        assert result.exit_code == 0
        assert "contact.email" in result.output
        assert "1 changed" in result.output

    def test_shallow_diff(self, tmp_path: Path) -> None:
        """Test top-level keys only."""
        before = tmp_path / "before.json"
        after = tmp_path / "after.json"
        before.write_text(json.dumps({"contact": {"email": ""}}))
        after.write_text(json.dumps({"contact": {"email": "a@b.co"}}))

        result = runner.invoke(app, ["diff", str(before), str(after), "--shallow"])

        assert result.exit_code == 0
        assert "contact.email" not in result.output
        assert "contact" in result.output

    def test_no_changes(self, tmp_path: Path) -> None:
        """Test identical documents."""
        path = tmp_path / "same.json"
        path.write_text(json.dumps({"a": 1}))

        result = runner.invoke(app, ["diff", str(path), str(path)])

        assert result.exit_code == 0
        assert "No changes" in result.output
