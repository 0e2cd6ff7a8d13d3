"""CLI subcommand registration for the reachability skill."""

from __future__ import annotations

import argparse
from typing import Any


def add_analysis_args(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every command that runs reachability queries."""
    parser.add_argument(
        "--common-ancestors",
        action="store_true",
        help="Also accept pairs sharing a common caller (slow on large graphs)",
    )
    parser.add_argument(
        "--strategy",
        choices=["shortest", "exhaustive"],
        default="shortest",
        help="Call chain search strategy (default: shortest)",
    )


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``reach`` subcommand and its sub-actions."""
    rch = subparsers.add_parser("reach", help="Reachability between functions")
    rch_sub = rch.add_subparsers(dest="action")

    # --- reach check ---
    chk = rch_sub.add_parser("check", help="Classify how two functions are connected")
    chk.add_argument("source", help="Source (free-site) function name")
    chk.add_argument("target", help="Target (use-site) function name")
    chk.add_argument("source_dir", help="Path to the source tree")
    chk.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum call-chain depth (default: 10)",
    )
    chk.add_argument(
        "--registry",
        default=None,
        help="Registry JSON from an external parser (skips scanning)",
    )
    chk.add_argument(
        "--overrides",
        default=None,
        help="Path to manual overrides JSON file",
    )
    add_analysis_args(chk)


def run(args: argparse.Namespace) -> dict[str, Any]:
    """Dispatch to the appropriate reachability action."""
    from uaftriage.skills.reachability import reach

    if args.action == "check":
        return reach(
            args.source_dir,
            args.source,
            args.target,
            max_depth=args.max_depth,
            registry_path=args.registry,
            overrides_path=args.overrides,
            common_ancestors=args.common_ancestors,
            strategy=args.strategy,
        )

    return {"error": f"Unknown reach action: {args.action}"}
