"""CLI subcommand registration for the enrich skill."""

from __future__ import annotations

import argparse
from typing import Any

from uaftriage.skills.reachability.cli import add_analysis_args


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``enrich`` subcommand and its sub-actions."""
    enr = subparsers.add_parser("enrich", help="Validate and annotate query results")
    enr_sub = enr.add_subparsers(dest="action")

    # --- enrich run ---
    run_p = enr_sub.add_parser("run", help="Enrich a results file (CSV or JSON)")
    run_p.add_argument("results", help="Path to query results (.csv or .json)")
    run_p.add_argument("source_dir", help="Path to the source tree")
    run_p.add_argument(
        "--registry",
        default=None,
        help="Registry JSON from an external parser (skips scanning)",
    )
    run_p.add_argument(
        "--overrides",
        default=None,
        help="Path to manual overrides JSON file",
    )
    run_p.add_argument(
        "--no-validate",
        action="store_true",
        help="Disable call chain validation",
    )
    run_p.add_argument(
        "-c",
        "--call-depth",
        type=int,
        default=-1,
        help="Maximum call chain depth (-1 = no limit)",
    )
    run_p.add_argument(
        "-j",
        "--concurrency",
        type=int,
        default=0,
        help="Number of workers (0 = auto-detect from CPU count)",
    )
    run_p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Deadline in seconds for the whole batch",
    )
    run_p.add_argument("--query", default=None, help="Query file the results came from")
    run_p.add_argument("--database", default=None, help="Database the query ran against")
    add_analysis_args(run_p)


def run(args: argparse.Namespace) -> dict[str, Any]:
    """Dispatch to the appropriate enrich action."""
    from uaftriage.skills.enrich import EnrichOptions, enrich_results

    if args.action == "run":
        options = EnrichOptions(
            validate=not args.no_validate,
            max_depth=args.call_depth,
            concurrency=args.concurrency,
            timeout=args.timeout,
            common_ancestors=args.common_ancestors,
            strategy=args.strategy,
        )
        return enrich_results(
            args.source_dir,
            args.results,
            registry_path=args.registry,
            overrides_path=args.overrides,
            options=options,
            query=args.query,
            database=args.database,
        )

    return {"error": f"Unknown enrich action: {args.action}"}
