"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from radonpm.install import InstallError, install
from radonpm.listing import list_packages
from radonpm.remove import remove
from radonpm.search import SearchError, search
from radonpm.upgrade import upgrade
from radonpm.utils import MissingDependenciesError, paint, setup_radon_dirs

_VERSION = "2.3.1"


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="radon", description="package manager for git")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    commands = parser.add_subparsers(dest="command", required=True)

    install_cmd = commands.add_parser("install")
    install_cmd.add_argument("package")
    install_cmd.add_argument("--gitlab", action="store_true")
    install_cmd.add_argument("--codeberg", action="store_true")
    install_cmd.add_argument("--local", action="store_true")
    install_cmd.add_argument("--branch")
    install_cmd.add_argument("--patches", type=Path)

    remove_cmd = commands.add_parser("remove")
    remove_cmd.add_argument("package")

    search_cmd = commands.add_parser("search")
    search_cmd.add_argument("query")

    commands.add_parser("list")

    upgrade_cmd = commands.add_parser("upgrade")
    upgrade_cmd.add_argument("--all", action="store_true")
    upgrade_cmd.add_argument("--package")
    return parser


def _source(args: argparse.Namespace) -> str | None:
    if args.codeberg:
        return "codeberg"
    if args.gitlab:
        return "gitlab"
    return None


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, run the command and return an exit status."""
    args = build_parser().parse_args(argv)
    setup_radon_dirs()
    try:
        match args.command:
            case "install":
                install(args.package, _source(args), args.local, args.branch, args.patches)
            case "remove":
                remove(args.package)
            case "search":
                search(args.query)
            case "list":
                list_packages()
            case "upgrade":
                upgrade(args.all, args.package)
    except MissingDependenciesError as exc:
        print(paint(str(exc), "red"), file=sys.stderr)
        return 1
    except (InstallError, SearchError, LookupError, ValueError, OSError, RuntimeError) as exc:
        print(f"{paint('Error', 'red')}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())