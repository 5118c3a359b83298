"""Input/output utilities for reading and writing record files."""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml


def read_jsonl(path: Path | str) -> Iterator[dict[str, Any]]:
    """Read a JSONL file and yield each record.

    Args:
        path: Path to the JSONL file.

    Yields:
        Each parsed JSON record.
    """
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_num}: {e}") from e


def read_document(path: Path | str) -> Any:
    """Read a single JSON or YAML document (chosen by file suffix)."""
    path = Path(path)
    with open(path) as f:
        if path.suffix == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}") from e
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e


def read_records(path: Path | str) -> list[dict[str, Any]]:
    """Read records from a JSONL, JSON or YAML file.

    A JSON/YAML document may hold a single record (a mapping) or a list
    of records.

    Raises:
        ValueError: If the file cannot be parsed or a record is not a
            mapping.
    """
    path = Path(path)
    if path.suffix == ".jsonl":
        records = list(read_jsonl(path))
    else:
        document = read_document(path)
        if document is None:
            records = []
        elif isinstance(document, list):
            records = document
        else:
            records = [document]

    for index, record in enumerate(records, 1):
        if not isinstance(record, dict):
            raise ValueError(f"Record {index} in {path} is not a mapping")
    return records


def write_jsonl(path: Path | str, records: Iterable[dict[str, Any]]) -> int:
    """Write records to a JSONL file.

    Args:
        path: Path to write the JSONL file.
        records: Iterator or list of records to write.

    Returns:
        Number of records written.
    """
    count = 0
    with open(path, "w") as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
            count += 1
    return count
