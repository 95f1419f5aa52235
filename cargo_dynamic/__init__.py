"""cargo-add-dynamic: add a cargo dependency as a dylib wrapper package.

The command line entry point is `cargo_dynamic.cli:main`.
"""

from __future__ import annotations

from .cli import build_parser, main

__all__ = ["build_parser", "main"]
