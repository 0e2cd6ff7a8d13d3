"""Function records and the immutable registry that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from uaftriage.errors import RegistryError


@dataclass(frozen=True, order=True)
class FunctionId:
    """Identity of a function definition: ``file:line:name``."""

    file: str
    line: int
    name: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.name}"

    @classmethod
    def parse(cls, text: str) -> "FunctionId":
        """Parse the ``file:line:name`` form. The file part may contain ``:``."""
        parts = text.rsplit(":", 2)
        if len(parts) != 3:
            raise RegistryError(f"Malformed function id: {text!r}")
        file, line, name = parts
        try:
            line_no = int(line)
        except ValueError:
            raise RegistryError(f"Malformed line number in function id: {text!r}") from None
        return cls(file=file, line=line_no, name=name)


@dataclass(frozen=True)
class Callee:
    """A call site inside a function body."""

    name: str
    line: int
    snippet: str = ""


@dataclass(frozen=True)
class FunctionRecord:
    """A function definition extracted from source."""

    name: str
    file: str
    start_line: int
    end_line: int
    signature: str = ""
    definition: str = ""
    callees: tuple[Callee, ...] = ()

    @property
    def id(self) -> FunctionId:
        return FunctionId(file=self.file, line=self.start_line, name=self.name)

    @property
    def definition_with_line_numbers(self) -> str:
        return add_line_numbers(self.definition, self.start_line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "file": self.file,
            "name": self.name,
            "start": self.start_line,
            "end": self.end_line,
            "sig": self.signature,
            "def": self.definition,
            "callees": [
                {"name": c.name, "line": c.line, "snippet": c.snippet}
                for c in self.callees
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FunctionRecord":
        try:
            callees = tuple(
                Callee(
                    name=c["name"],
                    line=int(c.get("line", 0)),
                    snippet=c.get("snippet", ""),
                )
                for c in data.get("callees") or []
            )
            rec = cls(
                name=data["name"],
                file=data["file"],
                start_line=int(data["start"]),
                end_line=int(data.get("end", data["start"])),
                signature=data.get("sig", ""),
                definition=data.get("def", ""),
                callees=callees,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise RegistryError(f"Malformed function record: {exc}") from exc
        if "id" in data and data["id"] != str(rec.id):
            raise RegistryError(
                f"Function id {data['id']!r} does not match its fields ({rec.id})"
            )
        return rec


def add_line_numbers(text: str, start_line: int) -> str:
    """Prefix each line with a right-aligned, 5-wide line number."""
    return "\n".join(
        f"{start_line + i:5d}  {line}" for i, line in enumerate(text.split("\n"))
    )


@dataclass(frozen=True)
class Registry:
    """Ordered, read-only collection of function records.

    Identifiers are unique; names may repeat (static functions in
    different files, overloads).
    """

    functions: tuple[FunctionRecord, ...] = ()
    _by_id: dict[FunctionId, FunctionRecord] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _by_name: dict[str, list[FunctionRecord]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for rec in self.functions:
            if rec.id in self._by_id:
                raise RegistryError(f"Duplicate function id: {rec.id}")
            self._by_id[rec.id] = rec
            self._by_name.setdefault(rec.name, []).append(rec)

    @classmethod
    def from_records(cls, records: Iterable[FunctionRecord]) -> "Registry":
        return cls(functions=tuple(records))

    def __len__(self) -> int:
        return len(self.functions)

    def __iter__(self) -> Iterator[FunctionRecord]:
        return iter(self.functions)

    def get(self, func_id: FunctionId) -> FunctionRecord | None:
        return self._by_id.get(func_id)

    def by_name(self, name: str) -> list[FunctionRecord]:
        """All records sharing *name*, in registry order."""
        return list(self._by_name.get(name, ()))

    def to_dict(self) -> dict[str, Any]:
        return {"functions": [rec.to_dict() for rec in self.functions]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Registry":
        if not isinstance(data, dict) or not isinstance(data.get("functions"), list):
            raise RegistryError("Registry JSON must be an object with a 'functions' list")
        return cls.from_records(FunctionRecord.from_dict(d) for d in data["functions"])
