"""Path finding over a call graph.

Two strategies share the same depth cap:

- ``shortest``: one shortest path per query. Cheap, and the default.
  Alternate routes between the same endpoints are not reported.
- ``exhaustive``: BFS over simple paths up to the cap, stopping once
  ``limit`` paths are found. Can blow up on dense graphs.

A path whose edge count exceeds the cap is treated as absent, even when
the caller asked for a larger depth.
"""

from __future__ import annotations

from collections import deque

import networkx as nx

from uaftriage.skills.registry.records import FunctionId

# Hard ceiling on search depth, independent of the requested max depth.
SEARCH_DEPTH_CAP = 5

STRATEGIES = ("shortest", "exhaustive")


def search_depth(max_depth: int) -> int:
    """Effective search depth for a requested *max_depth*."""
    return min(max_depth, SEARCH_DEPTH_CAP)


def shortest_path(
    graph: nx.DiGraph,
    source: FunctionId,
    target: FunctionId,
    depth: int,
) -> list[FunctionId] | None:
    """Shortest path from *source* to *target*, or None if absent or too long."""
    try:
        path = nx.shortest_path(graph, source, target)
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return None
    if len(path) - 1 > depth:
        return None
    return path


def find_all_paths(
    graph: nx.DiGraph,
    source: FunctionId,
    target: FunctionId,
    depth: int,
    limit: int,
) -> list[list[FunctionId]]:
    """BFS for simple paths from *source* to *target* of at most *depth* edges.

    Paths come out shortest first; the search stops after *limit* paths.
    """
    if source == target:
        return [[source]]
    if source not in graph or target not in graph:
        return []

    results: list[list[FunctionId]] = []
    queue: deque[list[FunctionId]] = deque([[source]])

    while queue and len(results) < limit:
        path = queue.popleft()
        if len(path) - 1 >= depth:
            continue

        for callee in sorted(graph.successors(path[-1])):
            if callee in path:
                # Skip cycles
                continue
            new_path = path + [callee]
            if callee == target:
                results.append(new_path)
                if len(results) >= limit:
                    break
            else:
                queue.append(new_path)

    return results


def find_paths(
    graph: nx.DiGraph,
    source: FunctionId,
    target: FunctionId,
    depth: int,
    *,
    strategy: str = "shortest",
    limit: int = 10,
) -> list[list[FunctionId]]:
    """Paths from *source* to *target* under the chosen strategy."""
    if strategy == "exhaustive":
        return find_all_paths(graph, source, target, depth, limit)
    path = shortest_path(graph, source, target, depth)
    return [path] if path is not None else []


def common_ancestors(
    graph: nx.DiGraph,
    source: FunctionId,
    target: FunctionId,
    depth: int,
) -> list[FunctionId]:
    """Vertices that reach both *source* and *target* within *depth* edges.

    Ordered by combined distance, nearest first.
    """
    reverse = graph.reverse(copy=False)
    up_source = nx.single_source_shortest_path_length(reverse, source, cutoff=depth)
    up_target = nx.single_source_shortest_path_length(reverse, target, cutoff=depth)
    shared = (set(up_source) & set(up_target)) - {source, target}
    return sorted(shared, key=lambda v: (up_source[v] + up_target[v], v))
