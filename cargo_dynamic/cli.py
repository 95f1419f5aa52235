#!/usr/bin/env python3
"""cargo-add-dynamic command line interface.

Works both standalone (`cargo-add-dynamic DEP`) and as a cargo subcommand
(`cargo add-dynamic DEP`), in which case cargo passes the subcommand name as
the first argument.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from cargo_dynamic import cli_util as u
from cargo_dynamic.cmd_add import add_arguments
from cargo_dynamic.manifest import WorkspaceError

SUBCOMMAND_NAME = "add-dynamic"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo add-dynamic",
        description=(
            "Cargo command similar to `cargo add` that will add a dependency <DEP> "
            "as a dynamic library (dylib) crate by creating a new sub-package whose "
            'only dependency is the specified <DEP> and whose crate-type is ["dylib"].'
        ),
    )
    add_arguments(parser)
    return parser


def _strip_subcommand(argv: Sequence[str]) -> list[str]:
    args = list(argv)
    if args and args[0] == SUBCOMMAND_NAME:
        args = args[1:]
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(_strip_subcommand(argv))
    u.configure_logging(verbose=bool(args.verbose))

    try:
        return int(args.func(args))
    except WorkspaceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return u.EXIT_CODE_ERROR
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return u.EXIT_CODE_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
