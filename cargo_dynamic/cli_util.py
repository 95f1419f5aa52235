#!/usr/bin/env python3
"""Shared utilities for the cargo-add-dynamic CLI.

It hosts:
- constants (manifest file name, environment variables, exit codes)
- the cargo subprocess runner
- logging setup
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional


MANIFEST_FILE_NAME = "Cargo.toml"

CARGO_ENV = "CARGO"
LOG_LEVEL_ENV = "CARGO_ADD_DYNAMIC_LOG"

EXIT_CODE_ERROR = 2
EXIT_CODE_NOT_FOUND = 127

logger = logging.getLogger(__name__)


def cargo_binary() -> str:
    # cargo exports $CARGO to the subcommands it spawns.
    return os.environ.get(CARGO_ENV) or "cargo"


def format_command(cmd: list[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in cmd)


def run(cmd: list[str], *, cwd: Path, env: Optional[Dict[str, str]] = None) -> int:
    merged_env = os.environ.copy()
    if env:
        merged_env.update(env)

    logger.debug("running %s (cwd=%s)", format_command(cmd), cwd)
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), env=merged_env)
    except FileNotFoundError as exc:
        print(f"ERROR: command not found: {cmd[0]} ({exc})", file=sys.stderr)
        return EXIT_CODE_NOT_FOUND
    return int(proc.returncode)


def configure_logging(*, verbose: bool) -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if level_name and isinstance(logging.getLevelName(level_name), int):
        level = logging.getLevelName(level_name)
    else:
        level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.WARNING,
        stream=sys.stderr,
    )
    logging.getLogger("cargo_dynamic").setLevel(level)
