"""CLI entry point for uaftriage skills."""

from __future__ import annotations

import argparse
import importlib
import json
import sys

from uaftriage.errors import (
    FindingDecodeError,
    RegistryError,
    SourceDirNotFoundError,
)
from uaftriage.log import configure as configure_logging

SKILL_DISPATCH = {
    "registry": "uaftriage.skills.registry.cli",
    "graph": "uaftriage.skills.graph.cli",
    "reach": "uaftriage.skills.reachability.cli",
    "enrich": "uaftriage.skills.enrich.cli",
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="uaftriage",
        description="Use-after-free finding triage via call graph reachability",
    )
    sub = parser.add_subparsers(dest="command")

    # --- Register skill subcommands ---
    for module in SKILL_DISPATCH.values():
        importlib.import_module(module).register(sub)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if not getattr(args, "action", None):
        # Re-parse to show skill-specific help
        parser.parse_args([args.command, "--help"])
        return 1

    configure_logging()

    cli_mod = importlib.import_module(SKILL_DISPATCH[args.command])
    try:
        result = cli_mod.run(args)
    except (FindingDecodeError, RegistryError, SourceDirNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    json.dump(result, sys.stdout, indent=2)
    print()
    return 1 if "error" in result else 0


if __name__ == "__main__":
    raise SystemExit(main())
