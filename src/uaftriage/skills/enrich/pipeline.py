"""Concurrent enrichment of query results.

Each result is handled by one pool worker, which:
1. attaches the free/use function definitions and lines
2. classifies the free/use relationship (when validation is on)
3. drops invalid results and results deeper than the depth budget
4. attaches definitions of the functions along accepted call chains

The call graph must be fully built before ``enrich`` is called; workers
only read it.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from uaftriage.errors import FunctionNotFoundError
from uaftriage.skills.enrich.context import SourceLocator
from uaftriage.skills.enrich.pool import default_concurrency, run_pool
from uaftriage.skills.findings.models import Finding, FunctionCode, QueryResult, SourceContext
from uaftriage.skills.graph.callgraph import CallGraph
from uaftriage.skills.reachability.analyzer import ReachabilityAnalyzer

logger = logging.getLogger(__name__)

# Search depth used when no depth budget is set.
UNBOUNDED_SEARCH_DEPTH = 10

PROGRESS_EVERY = 100


@dataclass(frozen=True)
class EnrichOptions:
    """Knobs for one enrichment run.

    ``max_depth < 0`` disables depth filtering; ``concurrency <= 0``
    picks a worker count from the CPU count.
    """

    validate: bool = True
    max_depth: int = -1
    concurrency: int = 0
    timeout: float | None = None
    common_ancestors: bool = False
    strategy: str = "shortest"

    @property
    def search_depth(self) -> int:
        return self.max_depth if self.max_depth >= 0 else UNBOUNDED_SEARCH_DEPTH


class Outcome(enum.Enum):
    UNCHECKED = "unchecked"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class _WorkResult:
    finding: Finding | None
    outcome: Outcome


@dataclass
class EnrichmentStats:
    """Validation counters, updated only on the collecting thread."""

    total: int = 0
    valid: int = 0
    invalid: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.UNCHECKED:
            return
        if outcome is Outcome.VALID:
            self.valid += 1
        else:
            self.invalid += 1
        self.total += 1

    @property
    def rate(self) -> float:
        """Percentage of validated results that passed."""
        return self.valid / self.total * 100 if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "validation_rate_percent": round(self.rate, 2),
        }


@dataclass
class EnrichmentReport:
    """Accepted findings in input order, plus statistics.

    ``error`` holds the first failure seen by any worker; the findings
    from every other item are still present.
    """

    findings: list[Finding] = field(default_factory=list)
    stats: EnrichmentStats = field(default_factory=EnrichmentStats)
    error: BaseException | None = None


class Enricher:
    """Attaches source context and reachability to query results."""

    def __init__(self, locator: SourceLocator) -> None:
        self.locator = locator

    def enrich(
        self,
        results: Sequence[QueryResult],
        graph: CallGraph | None,
        options: EnrichOptions | None = None,
    ) -> EnrichmentReport:
        options = options or EnrichOptions()
        workers = options.concurrency if options.concurrency > 0 else default_concurrency()

        analyzer = None
        if options.validate and graph is not None:
            analyzer = ReachabilityAnalyzer(
                graph,
                common_ancestors=options.common_ancestors,
                strategy=options.strategy,
            )

        logger.info(
            "processing results in parallel",
            extra={"workers": workers, "total_results": len(results)},
        )

        stats = EnrichmentStats()

        def worker(index: int, result: QueryResult) -> _WorkResult:
            work = self._process(result, analyzer, options)
            if (index + 1) % PROGRESS_EVERY == 0:
                logger.debug(
                    "processing progress",
                    extra={
                        "worker": threading.current_thread().name,
                        "processed": index + 1,
                        "total": len(results),
                    },
                )
            return work

        outcome = run_pool(
            results,
            worker,
            workers,
            timeout=options.timeout,
            on_result=lambda _index, work: stats.record(work.outcome),
        )

        findings = [
            slot.finding for slot in outcome.slots if slot is not None and slot.finding is not None
        ]

        if analyzer is not None:
            logger.info("call chain validation statistics", extra=stats.to_dict())

        return EnrichmentReport(findings=findings, stats=stats, error=outcome.error)

    def _process(
        self,
        result: QueryResult,
        analyzer: ReachabilityAnalyzer | None,
        options: EnrichOptions,
    ) -> _WorkResult:
        finding = self._with_source(result)
        if analyzer is None:
            return _WorkResult(finding, Outcome.UNCHECKED)

        validation = analyzer.analyze(result.free_func, result.use_func, options.search_depth)
        finding.validation = validation

        if not validation.is_valid:
            return _WorkResult(None, Outcome.INVALID)
        if options.max_depth >= 0 and validation.max_depth > options.max_depth:
            return _WorkResult(None, Outcome.INVALID)

        for name in intermediate_functions(validation.chains, result.free_func, result.use_func):
            try:
                code = self.locator.definition_by_name(name)
            except FunctionNotFoundError as exc:
                logger.debug(
                    "could not find intermediate function",
                    extra={"function": name, "error": str(exc)},
                )
                code = FunctionCode(definition=f"// Function {name} not found")
            finding.source.inter_funcs.append(code)

        return _WorkResult(finding, Outcome.VALID)

    def _with_source(self, result: QueryResult) -> Finding:
        try:
            free_code = self.locator.function_code(
                result.free_file, result.free_func_def_ln, result.free_func, result.free_ln
            )
            use_code = self.locator.function_code(
                result.use_file, result.use_func_def_ln, result.use_func, result.use_ln
            )
        except FunctionNotFoundError as exc:
            logger.warning(
                "failed to enrich result with source code",
                extra={"object": result.object, "error": str(exc)},
            )
            return Finding(result=result)
        return Finding(result=result, source=SourceContext(free_func=free_code, use_func=use_code))


def intermediate_functions(
    chains: Iterable[Sequence[str]], free_func: str, use_func: str
) -> list[str]:
    """Names on *chains* other than the endpoints, first-seen order."""
    seen: list[str] = []
    for chain in chains:
        for name in chain:
            if name not in (free_func, use_func) and name not in seen:
                seen.append(name)
    return seen
