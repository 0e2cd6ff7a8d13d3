"""Reachability skill – classify how two functions are connected.

Public API
----------
- analyze(graph, source, target, max_depth=10, *, common_ancestors=False,
          strategy="shortest") -> ReachabilityResult
- reach(source_dir, source, target, *, max_depth=10, registry_path=None,
        overrides_path=None, common_ancestors=False, strategy="shortest") -> dict
"""

from __future__ import annotations

from typing import Any

from uaftriage.skills.graph import CallGraph, load_graph
from uaftriage.skills.reachability.analyzer import (
    ReachabilityAnalyzer,
    ReachabilityResult,
    RelationshipKind,
    chain_depths,
)
from uaftriage.skills.reachability.pathfinder import SEARCH_DEPTH_CAP

__all__ = [
    "ReachabilityAnalyzer",
    "ReachabilityResult",
    "RelationshipKind",
    "SEARCH_DEPTH_CAP",
    "analyze",
    "chain_depths",
    "reach",
]


def analyze(
    graph: CallGraph,
    source: str,
    target: str,
    max_depth: int = 10,
    *,
    common_ancestors: bool = False,
    strategy: str = "shortest",
) -> ReachabilityResult:
    """Classify the relationship between *source* and *target*."""
    analyzer = ReachabilityAnalyzer(
        graph, common_ancestors=common_ancestors, strategy=strategy
    )
    return analyzer.analyze(source, target, max_depth)


def reach(
    source_dir: str,
    source: str,
    target: str,
    *,
    max_depth: int = 10,
    registry_path: str | None = None,
    overrides_path: str | None = None,
    common_ancestors: bool = False,
    strategy: str = "shortest",
) -> dict[str, Any]:
    """Build the graph for *source_dir* and run one query.

    Returns dict with keys: source, target, max_depth, result.
    """
    graph = load_graph(
        source_dir, registry_path=registry_path, overrides_path=overrides_path
    )
    result = analyze(
        graph,
        source,
        target,
        max_depth,
        common_ancestors=common_ancestors,
        strategy=strategy,
    )
    return {
        "source": source,
        "target": target,
        "max_depth": max_depth,
        "result": result.to_dict(),
    }
