"""Call graph skill – build, inspect, and query call graphs.

Public API
----------
- build(source_dir, *, registry_path=None, overrides_path=None) -> dict
- show(source_dir, *, registry_path=None) -> dict
- callees(source_dir, function, *, registry_path=None) -> dict
- callers(source_dir, function, *, registry_path=None) -> dict
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from uaftriage.skills.graph.callgraph import CallGraph, build_call_graph, load_overrides
from uaftriage.skills.registry import Registry, get_registry, load_registry

__all__ = [
    "CallGraph",
    "build",
    "build_call_graph",
    "callees",
    "callers",
    "load_graph",
    "load_overrides",
    "show",
]


def _registry_for(source_dir: str, registry_path: str | None) -> Registry:
    if registry_path is not None:
        return load_registry(registry_path)
    return get_registry(source_dir)


def load_graph(
    source_dir: str,
    *,
    registry_path: str | None = None,
    overrides_path: str | None = None,
) -> CallGraph:
    """Build the call graph for *source_dir* (or for a registry file)."""
    registry = _registry_for(source_dir, registry_path)
    return build_call_graph(registry, overrides=load_overrides(overrides_path))


def build(
    source_dir: str,
    *,
    registry_path: str | None = None,
    overrides_path: str | None = None,
) -> dict[str, Any]:
    """Build a call graph and report its size.

    Returns status dict with keys: status, node_count, edge_count, source_dir.
    """
    graph = load_graph(
        source_dir, registry_path=registry_path, overrides_path=overrides_path
    )
    return {
        "status": "built",
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
        "source_dir": str(Path(source_dir).resolve()),
    }


def show(source_dir: str, *, registry_path: str | None = None) -> dict[str, Any]:
    """Return the name-level call graph.

    Returns dict with keys: graph, node_count, edge_count.
    """
    graph = load_graph(source_dir, registry_path=registry_path)
    return {
        "graph": graph.to_dict(),
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
    }


def callees(
    source_dir: str,
    function: str,
    *,
    registry_path: str | None = None,
) -> dict[str, Any]:
    """List direct callees of a function.

    Returns dict with keys: function, callees, count.
    """
    callee_list = load_graph(source_dir, registry_path=registry_path).callees(function)
    return {
        "function": function,
        "callees": callee_list,
        "count": len(callee_list),
    }


def callers(
    source_dir: str,
    function: str,
    *,
    registry_path: str | None = None,
) -> dict[str, Any]:
    """List direct callers of a function (reverse lookup).

    Returns dict with keys: function, callers, count.
    """
    caller_list = load_graph(source_dir, registry_path=registry_path).callers(function)
    return {
        "function": function,
        "callers": caller_list,
        "count": len(caller_list),
    }
