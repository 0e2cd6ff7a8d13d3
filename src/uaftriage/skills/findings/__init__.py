"""Findings skill – candidate free/use pairs and their decoding.

Public API
----------
- load_results(path) -> list[QueryResult]
- decode_csv(text) -> list[QueryResult]
- decode_json(data) -> list[QueryResult]
"""

from uaftriage.skills.findings.decoder import (
    REQUIRED_FIELDS,
    decode_csv,
    decode_json,
    load_results,
)
from uaftriage.skills.findings.models import (
    Finding,
    FunctionCode,
    QueryResult,
    SourceContext,
)

__all__ = [
    "REQUIRED_FIELDS",
    "Finding",
    "FunctionCode",
    "QueryResult",
    "SourceContext",
    "decode_csv",
    "decode_json",
    "load_results",
]
