"""Enrichment skill – validate and annotate query results at scale.

Public API
----------
- enrich_results(source_dir, results_path, *, registry_path=None,
                 overrides_path=None, options=None, query=None,
                 database=None) -> dict
"""

from __future__ import annotations

import logging
from typing import Any

from uaftriage.skills.enrich.context import SourceLocator
from uaftriage.skills.enrich.pipeline import (
    EnrichmentReport,
    EnrichmentStats,
    Enricher,
    EnrichOptions,
    intermediate_functions,
)
from uaftriage.skills.enrich.pool import PoolOutcome, default_concurrency, run_pool
from uaftriage.skills.findings import load_results
from uaftriage.skills.graph import build_call_graph, load_overrides
from uaftriage.skills.registry import RegistryCache, get_registry, load_registry

__all__ = [
    "EnrichOptions",
    "Enricher",
    "EnrichmentReport",
    "EnrichmentStats",
    "PoolOutcome",
    "SourceLocator",
    "default_concurrency",
    "enrich_results",
    "intermediate_functions",
    "run_pool",
]

logger = logging.getLogger(__name__)


def enrich_results(
    source_dir: str,
    results_path: str,
    *,
    registry_path: str | None = None,
    overrides_path: str | None = None,
    options: EnrichOptions | None = None,
    query: str | None = None,
    database: str | None = None,
    cache: RegistryCache | None = None,
) -> dict[str, Any]:
    """Decode, validate, and annotate the results in *results_path*.

    Returns dict with keys: query, database, source_dir, results, stats,
    and ``error`` when a worker failed or the deadline expired.
    """
    options = options or EnrichOptions()
    results = load_results(results_path)
    logger.info("loaded query results", extra={"results_found": len(results)})

    if registry_path is not None:
        registry = load_registry(registry_path)
    else:
        cache = cache or RegistryCache(get_registry)
        registry = cache.get(source_dir)

    graph = None
    if options.validate:
        graph = build_call_graph(registry, overrides=load_overrides(overrides_path))

    report = Enricher(SourceLocator(source_dir, registry)).enrich(results, graph, options)

    output: dict[str, Any] = {
        "query": query,
        "database": database,
        "source_dir": source_dir,
        "results": [finding.to_dict() for finding in report.findings],
        "stats": report.stats.to_dict(),
    }
    if report.error is not None:
        output["error"] = str(report.error)
    logger.info(
        "query processing complete",
        extra={"findings_processed": len(report.findings)},
    )
    return output
