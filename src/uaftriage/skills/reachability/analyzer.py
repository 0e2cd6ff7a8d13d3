"""Reachability classification between two functions.

Given a free-site and a use-site function name, decide how the two are
connected in the call graph. Each (source id, target id) combination is
checked in priority order and the first match wins:

1. same function
2. source reaches target
3. target reaches source
4. a third function reaches both (off unless ``common_ancestors=True``;
   the sweep is far more expensive than the path checks and recovers
   only a small share of extra findings on large graphs)

Every outcome, including unresolved names, is a ``ReachabilityResult``;
nothing here raises.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Sequence

from uaftriage.skills.graph.callgraph import CallGraph
from uaftriage.skills.reachability import pathfinder
from uaftriage.skills.registry.records import FunctionId

MAX_CHAINS = 10
MAX_COMMON_CALLERS = 10


class RelationshipKind(enum.Enum):
    NO_RELATIONSHIP = "none"
    SAME_FUNCTION = "same_function"
    FORWARD_REACHABLE = "forward"
    BACKWARD_REACHABLE = "backward"
    COMMON_ANCESTOR = "common_ancestor"


@dataclass(frozen=True)
class ReachabilityResult:
    """Outcome of one reachability query."""

    is_valid: bool
    kind: RelationshipKind
    reason: str
    details: str = ""
    chains: tuple[tuple[str, ...], ...] = ()
    common_callers: tuple[str, ...] = ()
    min_depth: int = 0
    max_depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Interchange form; empty fields are omitted."""
        data: dict[str, Any] = {
            "valid": self.is_valid,
            "reason": self.reason,
            "relationship": self.kind.value,
        }
        if self.chains:
            data["chains"] = [list(chain) for chain in self.chains]
        if self.common_callers:
            data["common_callers"] = list(self.common_callers)
        if self.details:
            data["details"] = self.details
        if self.min_depth:
            data["min_depth"] = self.min_depth
        if self.max_depth:
            data["max_depth"] = self.max_depth
        return data


class ReachabilityAnalyzer:
    """Runs reachability queries against a frozen call graph.

    Holds configuration only, so one instance can serve many threads.
    """

    def __init__(
        self,
        graph: CallGraph,
        *,
        common_ancestors: bool = False,
        strategy: str = "shortest",
    ) -> None:
        if strategy not in pathfinder.STRATEGIES:
            raise ValueError(f"Unknown path strategy: {strategy}")
        self.graph = graph
        self.common_ancestors = common_ancestors
        self.strategy = strategy

    def analyze(self, source_name: str, target_name: str, max_depth: int = 10) -> ReachabilityResult:
        source_ids = self.graph.ids_for(source_name)
        target_ids = self.graph.ids_for(target_name)

        if not source_ids:
            return ReachabilityResult(
                is_valid=False,
                kind=RelationshipKind.NO_RELATIONSHIP,
                reason="Free function not found in call graph",
                details=f"Function '{source_name}' was not found in the parsed codebase",
            )
        if not target_ids:
            return ReachabilityResult(
                is_valid=False,
                kind=RelationshipKind.NO_RELATIONSHIP,
                reason="Use function not found in call graph",
                details=f"Function '{target_name}' was not found in the parsed codebase",
            )

        acc = _Accumulator(source_name, target_name, max_depth)
        for source_id in source_ids:
            for target_id in target_ids:
                if self._classify(acc, source_id, target_id):
                    return acc.result()
        return acc.result()

    def _classify(self, acc: "_Accumulator", source_id: FunctionId, target_id: FunctionId) -> bool:
        if source_id == target_id:
            acc.found(RelationshipKind.SAME_FUNCTION, [[source_id]])
            return True

        depth = pathfinder.search_depth(acc.max_depth)

        paths = self._paths(source_id, target_id, depth)
        if paths:
            acc.found(RelationshipKind.FORWARD_REACHABLE, paths)
            return True

        paths = self._paths(target_id, source_id, depth)
        if paths:
            acc.found(RelationshipKind.BACKWARD_REACHABLE, paths)
            return True

        if not self.common_ancestors:
            return False

        callers = pathfinder.common_ancestors(self.graph.graph, source_id, target_id, depth)
        if not callers:
            return False
        first = callers[0]
        # Chain budget is split between the two branches
        to_source = self._paths(first, source_id, depth, limit=MAX_CHAINS // 2)
        to_target = self._paths(first, target_id, depth, limit=MAX_CHAINS - len(to_source))
        acc.found(RelationshipKind.COMMON_ANCESTOR, to_source + to_target)
        acc.add_common_callers(c.name for c in callers)
        return True

    def _paths(
        self, start: FunctionId, end: FunctionId, depth: int, limit: int = MAX_CHAINS
    ) -> list[list[FunctionId]]:
        return pathfinder.find_paths(
            self.graph.graph, start, end, depth, strategy=self.strategy, limit=limit
        )


@dataclass
class _Accumulator:
    """Per-query scratch state; never shared between threads."""

    source_name: str
    target_name: str
    max_depth: int
    kind: RelationshipKind = RelationshipKind.NO_RELATIONSHIP
    chains: list[tuple[str, ...]] = field(default_factory=list)
    common_callers: list[str] = field(default_factory=list)

    def found(self, kind: RelationshipKind, paths: Sequence[Sequence[FunctionId]]) -> None:
        self.kind = kind
        for path in paths:
            if len(self.chains) >= MAX_CHAINS:
                break
            chain = tuple(fid.name for fid in path)
            if chain not in self.chains:
                self.chains.append(chain)

    def add_common_callers(self, names) -> None:
        for name in names:
            if name not in self.common_callers:
                self.common_callers.append(name)

    def result(self) -> ReachabilityResult:
        if self.kind is RelationshipKind.NO_RELATIONSHIP:
            return ReachabilityResult(
                is_valid=False,
                kind=self.kind,
                reason="No reachability relationship found between functions",
                details=(
                    "No direct calls, reverse calls, or common callers found between "
                    f"{self.source_name} and {self.target_name} within depth {self.max_depth}"
                ),
            )

        reason, details = self._describe()
        min_depth, max_depth = chain_depths(self.chains)
        return ReachabilityResult(
            is_valid=True,
            kind=self.kind,
            reason=reason,
            details=details,
            chains=tuple(self.chains),
            common_callers=tuple(self.common_callers[:MAX_COMMON_CALLERS]),
            min_depth=min_depth,
            max_depth=max_depth,
        )

    def _describe(self) -> tuple[str, str]:
        src, dst = self.source_name, self.target_name
        single_hop = bool(self.chains) and len(self.chains[0]) == 2

        if self.kind is RelationshipKind.SAME_FUNCTION:
            return (
                "Functions are the same",
                f"Both operations occur in the same function: {src}",
            )
        if self.kind is RelationshipKind.FORWARD_REACHABLE:
            details = f"Direct call: {src} calls {dst}" if single_hop else f"Call chain: {src} → {dst}"
            return "Source function can reach target function", details
        if self.kind is RelationshipKind.BACKWARD_REACHABLE:
            details = (
                f"Reverse call: {dst} calls {src}"
                if single_hop
                else f"Reverse call chain: {dst} → {src}"
            )
            return "Target function can reach source function", details

        if len(self.common_callers) == 1:
            details = f"Common caller: {self.common_callers[0]} calls both {src} and {dst}"
        else:
            details = f"Found {len(self.common_callers)} common callers that reach both functions"
        return "Functions have common caller", details


def chain_depths(chains: Sequence[Sequence[str]]) -> tuple[int, int]:
    """(min, max) edge counts across *chains*.

    Chains ending at different functions describe the two branches under
    a common caller; their depths add up to the caller-to-leaf distance.
    """
    if not chains:
        return 0, 0

    depths = [len(chain) - 1 for chain in chains]
    min_depth, max_depth = min(depths), max(depths)

    first_end = chains[0][-1]
    for chain, depth in zip(chains[1:], depths[1:]):
        if chain[-1] != first_end:
            max_depth = max(max_depth, depths[0] + depth)

    return min_depth, max_depth
