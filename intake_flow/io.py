"""Input/output helpers for recorded answer files."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from intake_flow.registry.models import Answer
from intake_flow.registry.store import read_document


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


def load_answers(path: Path | str) -> list[Answer]:
    """Load recorded answers in the order they were given.

    Accepted formats:
        - JSONL, one ``{"step_id": ..., "value": ...}`` record per line
        - JSON/YAML list of such records
        - JSON/YAML object mapping step ID to value
    """
    path = Path(path)
    if path.suffix == ".jsonl":
        records: Any = list(read_jsonl(path))
    else:
        records = read_document(path)

    if isinstance(records, dict):
        return [Answer(step_id=k, value=v) for k, v in records.items()]
    if isinstance(records, list):
        return [Answer.model_validate(r) for r in records]
    raise ValueError(f"Unsupported answers document in {path}")
