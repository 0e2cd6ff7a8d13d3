"""CLI subcommand registration for the registry skill."""

from __future__ import annotations

import argparse
from typing import Any


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``registry`` subcommand and its sub-actions."""
    reg = subparsers.add_parser("registry", help="Function registry operations")
    reg_sub = reg.add_subparsers(dest="action")

    # --- registry scan ---
    scn = reg_sub.add_parser("scan", help="Scan C sources into a registry")
    scn.add_argument("source_dir", help="Path to the source tree")
    scn.add_argument(
        "--force", action="store_true", help="Rescan even if cached"
    )

    # --- registry lookup ---
    lkp = reg_sub.add_parser("lookup", help="List definitions of a function")
    lkp.add_argument("function", help="Function name")
    lkp.add_argument("source_dir", help="Path to the source tree")

    # --- registry dump ---
    dmp = reg_sub.add_parser("dump", help="Dump the full registry as JSON")
    dmp.add_argument("source_dir", help="Path to the source tree")


def run(args: argparse.Namespace) -> dict[str, Any]:
    """Dispatch to the appropriate registry action."""
    from uaftriage.skills.registry import dump, lookup, scan

    if args.action == "scan":
        return scan(args.source_dir, force=args.force)

    if args.action == "lookup":
        return lookup(args.source_dir, args.function)

    if args.action == "dump":
        return dump(args.source_dir)

    return {"error": f"Unknown registry action: {args.action}"}
