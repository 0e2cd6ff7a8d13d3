"""Function registry skill – scan, load, and query function records.

Public API
----------
- get_registry(source_dir, *, use_cache=True) -> Registry
- load_registry(path) -> Registry
- scan(source_dir, *, force=False) -> dict
- lookup(source_dir, function) -> dict
- dump(source_dir) -> dict
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from uaftriage.errors import RegistryError
from uaftriage.skills.registry.cache import (
    RegistryCache,
    load_registry_cache as _load_cache,
    save_registry_cache as _save_cache,
)
from uaftriage.skills.registry.records import (
    Callee,
    FunctionId,
    FunctionRecord,
    Registry,
    add_line_numbers,
)
from uaftriage.skills.registry.scanner import scan_directory

__all__ = [
    "Callee",
    "FunctionId",
    "FunctionRecord",
    "Registry",
    "RegistryCache",
    "add_line_numbers",
    "dump",
    "get_registry",
    "load_registry",
    "lookup",
    "scan",
    "scan_directory",
]


def get_registry(source_dir: str, *, use_cache: bool = True) -> Registry:
    """Return the registry for *source_dir*, scanning only when needed."""
    if use_cache:
        cached = _load_cache(source_dir)
        if cached is not None:
            return cached
    registry = scan_directory(source_dir)
    if use_cache:
        _save_cache(source_dir, registry)
    return registry


def load_registry(path: str) -> Registry:
    """Load a registry written by an external parser (or by ``dump``)."""
    p = Path(path)
    if not p.exists():
        raise RegistryError(f"Registry file does not exist: {p}")
    try:
        data = json.loads(p.read_text())
    except json.JSONDecodeError as exc:
        raise RegistryError(f"Registry file is not valid JSON: {exc}") from exc
    return Registry.from_dict(data)


def scan(source_dir: str, *, force: bool = False) -> dict[str, Any]:
    """Scan a source tree and cache the registry.

    Returns status dict with keys: status, function_count, file_count, source_dir.
    """
    status = "built"
    registry = None if force else _load_cache(source_dir)
    if registry is not None:
        status = "cached"
    else:
        registry = scan_directory(source_dir)
        _save_cache(source_dir, registry)

    return {
        "status": status,
        "function_count": len(registry),
        "file_count": len({rec.file for rec in registry}),
        "source_dir": str(Path(source_dir).resolve()),
    }


def lookup(source_dir: str, function: str) -> dict[str, Any]:
    """List every definition of *function*.

    Returns dict with keys: function, definitions, count.
    """
    registry = get_registry(source_dir)
    defs = [
        {
            "id": str(rec.id),
            "file": rec.file,
            "start_line": rec.start_line,
            "end_line": rec.end_line,
            "signature": rec.signature,
            "callees": sorted({c.name for c in rec.callees}),
        }
        for rec in registry.by_name(function)
    ]
    return {"function": function, "definitions": defs, "count": len(defs)}


def dump(source_dir: str) -> dict[str, Any]:
    """Return the full registry in its interchange form."""
    return get_registry(source_dir).to_dict()
