"""Decoding of static analysis results into ``QueryResult`` records.

Accepts the CSV the query engine decodes its result set into (header row
first) or a JSON list of objects with the same keys. Any malformed row
rejects the whole batch.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from uaftriage.errors import FindingDecodeError
from uaftriage.skills.findings.models import QueryResult

REQUIRED_FIELDS = (
    "object",
    "free_func",
    "free_file",
    "free_func_def_ln",
    "free_ln",
    "use_func",
    "use_file",
    "use_func_def_ln",
    "use_ln",
)

INT_FIELDS = ("free_func_def_ln", "free_ln", "use_func_def_ln", "use_ln")


def decode_csv(text: str) -> list[QueryResult]:
    """Decode CSV text with a header row naming at least REQUIRED_FIELDS."""
    reader = csv.reader(io.StringIO(text))
    try:
        rows = list(reader)
    except csv.Error as exc:
        raise FindingDecodeError(f"failed to parse CSV: {exc}") from exc

    if not rows:
        return []

    header = {name: idx for idx, name in enumerate(rows[0])}
    for name in REQUIRED_FIELDS:
        if name not in header:
            raise FindingDecodeError(f"required field '{name}' not found in CSV header")

    records = []
    for row_no, row in enumerate(rows[1:], start=2):
        if not row:
            continue
        if len(row) < len(rows[0]):
            raise FindingDecodeError(
                f"row {row_no}: expected {len(rows[0])} columns, got {len(row)}"
            )
        records.append({name: row[header[name]] for name in REQUIRED_FIELDS})
    return _build(records)


def decode_json(data: Any) -> list[QueryResult]:
    """Decode a JSON list of result objects."""
    if not isinstance(data, list):
        raise FindingDecodeError("results JSON must be a list of objects")
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise FindingDecodeError(f"result {idx}: expected an object")
        missing = [name for name in REQUIRED_FIELDS if name not in item]
        if missing:
            raise FindingDecodeError(f"result {idx}: missing fields {', '.join(missing)}")
    return _build(data)


def load_results(path: str) -> list[QueryResult]:
    """Load results from a ``.json`` or ``.csv`` file."""
    p = Path(path)
    if not p.exists():
        raise FindingDecodeError(f"results file does not exist: {p}")
    text = p.read_text()
    if p.suffix == ".json":
        try:
            return decode_json(json.loads(text))
        except json.JSONDecodeError as exc:
            raise FindingDecodeError(f"results file is not valid JSON: {exc}") from exc
    return decode_csv(text)


def _build(records: Iterable[Mapping[str, Any]]) -> list[QueryResult]:
    results = []
    for idx, rec in enumerate(records):
        values = {name: rec[name] for name in REQUIRED_FIELDS}
        for name in INT_FIELDS:
            values[name] = _to_int(values[name], name, idx)
        for name in REQUIRED_FIELDS:
            if name not in INT_FIELDS:
                values[name] = str(values[name])
        results.append(QueryResult(**values))
    return results


def _to_int(value: Any, name: str, idx: int) -> int:
    if isinstance(value, bool):
        raise FindingDecodeError(f"result {idx}: invalid {name} value: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise FindingDecodeError(f"result {idx}: invalid {name} value: {value!r}") from None
