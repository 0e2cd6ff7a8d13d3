"""Candidate use-after-free findings and their enrichment state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from uaftriage.skills.reachability.analyzer import ReachabilityResult


@dataclass(frozen=True)
class QueryResult:
    """One free/use pair reported by the static analysis query."""

    object: str
    free_func: str
    free_file: str
    free_func_def_ln: int
    free_ln: int
    use_func: str
    use_file: str
    use_func_def_ln: int
    use_ln: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "object": self.object,
            "free_func": self.free_func,
            "free_file": self.free_file,
            "free_func_def_ln": self.free_func_def_ln,
            "free_ln": self.free_ln,
            "use_func": self.use_func,
            "use_file": self.use_file,
            "use_func_def_ln": self.use_func_def_ln,
            "use_ln": self.use_ln,
        }


@dataclass(frozen=True)
class FunctionCode:
    """Function definition (with line numbers) and the line of interest."""

    definition: str = ""
    snippet: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"def": self.definition, "snippet": self.snippet}


@dataclass
class SourceContext:
    free_func: FunctionCode = field(default_factory=FunctionCode)
    use_func: FunctionCode = field(default_factory=FunctionCode)
    inter_funcs: list[FunctionCode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "free_func": self.free_func.to_dict(),
            "use_func": self.use_func.to_dict(),
            "inter_funcs": [f.to_dict() for f in self.inter_funcs],
        }


@dataclass
class Finding:
    """A query result plus the context and validation attached to it.

    Filled in by exactly one pipeline worker, then only read.
    """

    result: QueryResult
    source: SourceContext = field(default_factory=SourceContext)
    validation: ReachabilityResult | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "codeql_result": self.result.to_dict(),
            "source_code": self.source.to_dict(),
        }
        if self.validation is not None:
            data["call_validation"] = self.validation.to_dict()
        return data
