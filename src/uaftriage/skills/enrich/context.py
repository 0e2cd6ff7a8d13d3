"""Source context lookups for findings.

Resolves functions named in query results against the registry and
reads the individual free/use lines from disk.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from uaftriage.errors import FunctionNotFoundError, SnippetNotFoundError
from uaftriage.skills.findings.models import FunctionCode
from uaftriage.skills.registry.records import FunctionId, FunctionRecord, Registry


class SourceLocator:
    """Looks up function definitions and source lines under one root."""

    def __init__(self, source_dir: str, registry: Registry) -> None:
        self.root = Path(source_dir).resolve()
        self.registry = registry
        # File contents for the lifetime of this locator only
        self._read_lines = lru_cache(maxsize=256)(_read_lines)

    def relpath(self, file: str) -> str:
        """Normalize *file* to the registry's root-relative form."""
        p = Path(file)
        if p.is_absolute():
            try:
                return p.resolve().relative_to(self.root).as_posix()
            except ValueError:
                return p.as_posix()
        return p.as_posix()

    def find_function(self, file: str, def_line: int, name: str) -> FunctionRecord:
        """Record for ``file:def_line:name``.

        Falls back to a same-named definition in *file* whose bounds
        contain *def_line*, since analysis engines and the scanner may
        disagree on where a definition starts (return type on its own
        line, attributes).
        """
        rel = self.relpath(file)
        rec = self.registry.get(FunctionId(file=rel, line=def_line, name=name))
        if rec is not None:
            return rec
        for candidate in self.registry.by_name(name):
            if candidate.file == rel and candidate.start_line <= def_line <= candidate.end_line:
                return candidate
        raise FunctionNotFoundError(f"{rel}:{def_line}:{name}")

    def definition_by_name(self, name: str) -> FunctionCode:
        """Definition of the first registry function called *name*."""
        matches = self.registry.by_name(name)
        if not matches:
            raise FunctionNotFoundError(name)
        return FunctionCode(definition=matches[0].definition_with_line_numbers)

    def read_line(self, file: str, line_no: int) -> str:
        """Read a single stripped line from a file under the root."""
        path = self.root / self.relpath(file)
        try:
            lines = self._read_lines(str(path))
        except OSError as exc:
            raise SnippetNotFoundError(str(exc)) from exc
        if 0 < line_no <= len(lines):
            return lines[line_no - 1].strip()
        raise SnippetNotFoundError(f"line {line_no} not found in file {path}")

    def function_code(self, file: str, def_line: int, name: str, line_no: int) -> FunctionCode:
        """Definition of a function plus the given line, or a placeholder line."""
        rec = self.find_function(file, def_line, name)
        try:
            snippet = self.read_line(file, line_no)
        except SnippetNotFoundError as exc:
            snippet = f"// Could not retrieve line {line_no}: {exc}"
        return FunctionCode(definition=rec.definition_with_line_numbers, snippet=snippet)


def _read_lines(path: str) -> tuple[str, ...]:
    return tuple(Path(path).read_text(errors="replace").splitlines())
