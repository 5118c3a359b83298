"""CLI for formstate."""

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from formstate import __version__
from formstate.config import (
    default_config_document,
    get_business_rules,
    get_formstate_home,
    get_message_overrides,
)
from formstate.errors import RuleSchemaError
from formstate.io import read_document, read_records, write_jsonl
from formstate.tree import diff_trees
from formstate.validation import RuleSchema, ValidationManager, load_rule_schema

app = typer.Typer(
    name="formstate",
    help="Form state and validation tooling.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"formstate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output"),
    ] = False,
) -> None:
    """formstate: Form state and validation tooling."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing config.yaml",
    ),
) -> None:
    """Write a default configuration file.

    Creates:
      ~/.config/formstate/config.yaml  (or $FORMSTATE_HOME/config.yaml)
    """
    home = get_formstate_home()
    config_path = home / "config.yaml"

    if config_path.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] Config already exists at {config_path}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    console.print(f"[bold]Initializing formstate at {home}[/bold]")
    home.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(default_config_document(), f, sort_keys=False, allow_unicode=True)
    console.print(f"  [green]✓[/green] Created config at {config_path}")


def _schema_problems(manager: ValidationManager, schema: RuleSchema) -> list[str]:
    problems = []
    unknown = manager.unknown_rules(schema)
    if unknown:
        problems.append(f"Unknown rules: {', '.join(unknown)}")
    problems.extend(manager.invalid_params(schema))
    return problems


def _load_manager() -> ValidationManager:
    try:
        return ValidationManager(
            business_rules=get_business_rules(),
            messages=get_message_overrides(),
        )
    except ValueError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1)


@app.command("check-rules")
def check_rules(
    rules_path: Annotated[
        Path,
        typer.Argument(help="Rule schema file (YAML or JSON)"),
    ],
) -> None:
    """Validate a rule schema file."""
    try:
        schema = load_rule_schema(rules_path)
    except RuleSchemaError as e:
        console.print(f"[red]Invalid:[/red] {e}")
        raise typer.Exit(1)

    problems = _schema_problems(_load_manager(), schema)
    if problems:
        for problem in problems:
            console.print(f"[red]Invalid:[/red] {escape(problem)}")
        raise typer.Exit(1)

    console.print(f"[green]Valid:[/green] {rules_path} ({len(schema.fields)} fields)")


@app.command()
def validate(
    data_path: Annotated[
        Path,
        typer.Argument(help="Records to validate (JSON, JSONL or YAML)"),
    ],
    rules_path: Annotated[
        Path,
        typer.Option("--rules", "-r", help="Rule schema file"),
    ],
    report_path: Annotated[
        Path | None,
        typer.Option("--report", help="Write per-record results as JSONL"),
    ] = None,
) -> None:
    """Validate records against a rule schema."""
    if not data_path.exists():
        console.print(f"[red]Error:[/red] Data file not found: {data_path}")
        raise typer.Exit(1)

    try:
        schema = load_rule_schema(rules_path)
    except RuleSchemaError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    manager = _load_manager()
    problems = _schema_problems(manager, schema)
    if problems:
        for problem in problems:
            console.print(f"[red]Error:[/red] {escape(problem)}")
        raise typer.Exit(1)

    try:
        records = read_records(data_path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"{data_path.name} against {schema.name or rules_path.name}")
    table.add_column("Record", justify="right")
    table.add_column("Status")
    table.add_column("Errors")

    labels = schema.label_map()
    report = []
    invalid_count = 0
    for index, record in enumerate(records, 1):
        result = manager.validate_with_schema(record, schema)
        messages = result.messages()
        if result.valid:
            table.add_row(str(index), "[green]valid[/green]", "")
        else:
            invalid_count += 1
            details = "\n".join(
                escape(f"{labels.get(field, field)}: {message}") for field, message in messages.items()
            )
            table.add_row(str(index), "[red]invalid[/red]", details)
        report.append({"record": index, "valid": result.valid, "errors": messages})

    console.print(table)
    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Records: {len(records)}")
    console.print(f"  [green]Valid:[/green] {len(records) - invalid_count}")
    if invalid_count:
        console.print(f"  [red]Invalid:[/red] {invalid_count}")

    if report_path:
        written = write_jsonl(report_path, report)
        console.print(f"  Report written: {report_path} ({written} records)")

    if invalid_count:
        raise typer.Exit(1)


@app.command()
def diff(
    before_path: Annotated[
        Path,
        typer.Argument(help="Original JSON/YAML document"),
    ],
    after_path: Annotated[
        Path,
        typer.Argument(help="Edited JSON/YAML document"),
    ],
    flat: bool = typer.Option(
        True,
        "--flat/--shallow",
        help="Dot-path keys for nested changes, or top-level keys only",
    ),
) -> None:
    """Show the values that changed between two documents."""
    documents = []
    for path in (before_path, after_path):
        if not path.exists():
            console.print(f"[red]Error:[/red] File not found: {path}")
            raise typer.Exit(1)
        try:
            document = read_document(path)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        if not isinstance(document, dict):
            console.print(f"[red]Error:[/red] {path} must contain a mapping")
            raise typer.Exit(1)
        documents.append(document)

    changes = diff_trees(documents[0], documents[1], nested=flat)
    if not changes:
        console.print("[green]No changes[/green]")
        return

    table = Table()
    table.add_column("Field")
    table.add_column("Value")
    for field_name, value in changes.items():
        table.add_row(escape(field_name), escape(repr(value)))
    console.print(table)
    console.print(f"\n{len(changes)} changed")


if __name__ == "__main__":
    app()
