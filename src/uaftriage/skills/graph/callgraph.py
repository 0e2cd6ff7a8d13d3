"""Call graph construction over a function registry.

Vertices are ``FunctionId``s. Callee references are resolved by *name*:
a name shared by several definitions (static helpers in different files,
duplicate translation units) fans out to an edge per definition. Calls
to functions outside the registry produce no edge.

The graph is frozen once built; it is shared read-only by every worker
that queries it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import networkx as nx

from uaftriage.skills.registry.records import FunctionId, Registry

logger = logging.getLogger(__name__)


class CallGraph:
    """Directed ``caller -> callee`` graph plus a ``name -> ids`` index."""

    def __init__(self, graph: nx.DiGraph, names: Mapping[str, Sequence[FunctionId]]) -> None:
        self.graph = graph
        self._names = {name: tuple(ids) for name, ids in names.items()}

    def ids_for(self, name: str) -> tuple[FunctionId, ...]:
        """Every identifier defined under *name*, in registry order."""
        return self._names.get(name, ())

    def __contains__(self, name: str) -> bool:
        return name in self._names

    @property
    def names(self) -> list[str]:
        return sorted(self._names)

    @property
    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def callees(self, name: str) -> list[str]:
        """Names called directly by any definition of *name*."""
        return sorted(
            {callee.name for fid in self.ids_for(name) for callee in self.graph.successors(fid)}
        )

    def callers(self, name: str) -> list[str]:
        """Names of functions calling any definition of *name*."""
        return sorted(
            {caller.name for fid in self.ids_for(name) for caller in self.graph.predecessors(fid)}
        )

    def to_dict(self) -> dict[str, list[str]]:
        """Name-level adjacency: caller name -> sorted callee names."""
        adjacency: dict[str, set[str]] = {}
        for caller, callee in self.graph.edges():
            adjacency.setdefault(caller.name, set()).add(callee.name)
        return {caller: sorted(callees) for caller, callees in sorted(adjacency.items())}


def build_call_graph(
    registry: Registry,
    overrides: Mapping[str, Sequence[str]] | None = None,
) -> CallGraph:
    """Build the call graph for a registry.

    *overrides* maps a caller name to extra callee names (e.g. calls made
    through function pointers the scanner cannot see). Both sides fan out
    across every definition sharing the name.
    """
    graph = nx.DiGraph()
    names: dict[str, list[FunctionId]] = {}

    for rec in registry:
        graph.add_node(rec.id)
        names.setdefault(rec.name, []).append(rec.id)

    for rec in registry:
        for callee in rec.callees:
            for callee_id in names.get(callee.name, ()):
                graph.add_edge(rec.id, callee_id)

    if overrides:
        for caller, targets in overrides.items():
            for caller_id in names.get(caller, ()):
                for target in targets:
                    for target_id in names.get(target, ()):
                        graph.add_edge(caller_id, target_id)

    nx.freeze(graph)
    logger.info(
        "call graph built",
        extra={"functions": graph.number_of_nodes(), "edges": graph.number_of_edges()},
    )
    return CallGraph(graph, names)


def load_overrides(path: str | None) -> dict[str, list[str]] | None:
    """Load manual override edges from a JSON file."""
    if path is None:
        return None
    p = Path(path)
    if not p.exists():
        return None
    data = json.loads(p.read_text())
    if not isinstance(data, dict):
        return None
    return data
