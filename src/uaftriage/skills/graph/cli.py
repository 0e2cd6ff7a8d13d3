"""CLI subcommand registration for the graph skill."""

from __future__ import annotations

import argparse
from typing import Any


def _add_registry_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--registry",
        default=None,
        help="Registry JSON from an external parser (skips scanning)",
    )


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``graph`` subcommand and its sub-actions."""
    grp = subparsers.add_parser("graph", help="Call graph operations")
    grp_sub = grp.add_subparsers(dest="action")

    # --- graph build ---
    bld = grp_sub.add_parser("build", help="Build call graph")
    bld.add_argument("source_dir", help="Path to the source tree")
    _add_registry_arg(bld)
    bld.add_argument(
        "--overrides",
        default=None,
        help="Path to manual overrides JSON file",
    )

    # --- graph show ---
    shw = grp_sub.add_parser("show", help="Dump full call graph")
    shw.add_argument("source_dir", help="Path to the source tree")
    _add_registry_arg(shw)

    # --- graph callees ---
    ce = grp_sub.add_parser("callees", help="List direct callees of a function")
    ce.add_argument("function", help="Function name")
    ce.add_argument("source_dir", help="Path to the source tree")
    _add_registry_arg(ce)

    # --- graph callers ---
    cr = grp_sub.add_parser("callers", help="List direct callers of a function")
    cr.add_argument("function", help="Function name")
    cr.add_argument("source_dir", help="Path to the source tree")
    _add_registry_arg(cr)


def run(args: argparse.Namespace) -> dict[str, Any]:
    """Dispatch to the appropriate graph action."""
    from uaftriage.skills.graph import build, callees, callers, show

    if args.action == "build":
        return build(
            args.source_dir,
            registry_path=args.registry,
            overrides_path=args.overrides,
        )

    if args.action == "show":
        return show(args.source_dir, registry_path=args.registry)

    if args.action == "callees":
        return callees(args.source_dir, args.function, registry_path=args.registry)

    if args.action == "callers":
        return callers(args.source_dir, args.function, registry_path=args.registry)

    return {"error": f"Unknown graph action: {args.action}"}
