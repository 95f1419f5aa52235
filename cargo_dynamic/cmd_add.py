#!/usr/bin/env python3
"""`cargo add-dynamic` command.

Steps, in order:
1. register the wrapper package as a workspace member (only when the target
   package belongs to the enclosing workspace)
2. `cargo new --lib` the wrapper package
3. `cargo add <DEP>` inside the wrapper package
4. make the wrapper a `crate-type = ["dylib"]` that re-exports <DEP>
5. `cargo add` the wrapper to the target package, renamed to <DEP>

The first failing cargo invocation ends the command with its exit status.
Nothing is cleaned up afterwards.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cargo_dynamic import cli_util as u
from cargo_dynamic.workspace import LocateStatus, locate

logger = logging.getLogger(__name__)

DYLIB_MANIFEST_SNIPPET = '\n[lib]\ncrate-type = ["dylib"]\n'


@dataclass(frozen=True)
class AddDynamicOptions:
    crate_name: str
    name: str
    lib_dir: Path
    optional: bool = False
    offline: bool = False
    no_default_features: bool = False
    features: tuple[str, ...] = ()
    path: Optional[Path] = None
    package: Optional[str] = None
    rename: Optional[str] = None
    dry_run: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace, *, cwd: Path) -> "AddDynamicOptions":
        crate_name = str(args.crate_name)
        name = args.name or f"{crate_name}-dynamic"

        path: Optional[Path] = None
        if args.path:
            path = Path(args.path).expanduser()
            if not path.is_absolute():
                path = cwd / path

        return cls(
            crate_name=crate_name,
            name=name,
            lib_dir=Path(args.lib_dir) if args.lib_dir else Path(name),
            optional=bool(args.optional),
            offline=bool(args.offline),
            no_default_features=bool(args.no_default_features),
            features=tuple(args.features or ()),
            path=path,
            package=args.package or None,
            rename=args.rename or None,
            dry_run=bool(getattr(args, "dry_run", False)),
        )

    @property
    def dependency_name(self) -> str:
        return self.rename or self.crate_name


def _run_cargo(argv: list[str], *, cwd: Path, dry_run: bool) -> int:
    cmd = [u.cargo_binary(), *argv]
    print(f"Running: {u.format_command(cmd)}")
    if dry_run:
        return 0
    return u.run(cmd, cwd=cwd)


def register_workspace_member(opts: AddDynamicOptions, *, cwd: Path) -> Optional[Path]:
    """Add the wrapper package to the workspace owning the target package.

    Returns the registered member path, or None when there is no workspace to
    update.
    """
    outcome = locate(cwd, opts.package)
    if outcome.status is LocateStatus.NOT_A_MEMBER:
        logger.info(
            "package %s is not a member of workspace %s; not registering %s",
            outcome.target_package_name,
            outcome.manifest_path,
            opts.lib_dir,
        )
        return None
    if not outcome.found:
        return None

    workspace = outcome.handle
    path_to_cwd = workspace.relative_path_from(cwd)
    member = path_to_cwd / opts.lib_dir if path_to_cwd is not None else opts.lib_dir

    if opts.dry_run:
        print(
            f"Would add {member.as_posix()} to workspace members in {workspace.manifest_path}"
        )
        return member

    if not workspace.add_member(member):
        return None
    print(f"Added {member.as_posix()} to workspace members in {workspace.manifest_path}")
    return member


def cargo_new_lib(opts: AddDynamicOptions, *, cwd: Path) -> int:
    argv = ["new", "--lib", "--name", opts.name, str(opts.lib_dir)]
    return _run_cargo(argv, cwd=cwd, dry_run=opts.dry_run)


def cargo_add_dependency_to_new_lib(opts: AddDynamicOptions, *, cwd: Path) -> int:
    argv = ["add", opts.crate_name]
    if opts.offline:
        argv.append("--offline")
    if opts.features:
        argv.append("--features")
        argv.extend(opts.features)
    if opts.no_default_features:
        argv.append("--no-default-features")
    if opts.path is not None:
        argv += ["--path", str(opts.path)]
    return _run_cargo(argv, cwd=cwd / opts.lib_dir, dry_run=opts.dry_run)


def modify_dynamic_lib(opts: AddDynamicOptions, *, cwd: Path) -> None:
    lib_dir = cwd / opts.lib_dir
    cargo_toml = lib_dir / u.MANIFEST_FILE_NAME
    lib_rs = lib_dir / "src" / "lib.rs"
    crate_ident = opts.crate_name.replace("-", "_")

    if opts.dry_run:
        print(f"Would mark {cargo_toml} as a dylib and re-export {crate_ident} from {lib_rs}")
        return

    logger.debug("Updating %s", cargo_toml)
    with cargo_toml.open("a", encoding="utf-8") as f:
        f.write(DYLIB_MANIFEST_SNIPPET)

    logger.debug("Updating %s", lib_rs)
    lib_rs.write_text(f"pub use {crate_ident}::*;\n", encoding="utf-8")


def cargo_add_dynamic_library_to_target_package(
    opts: AddDynamicOptions, *, cwd: Path
) -> int:
    argv = [
        "add",
        opts.name,
        "--rename",
        opts.dependency_name,
        "--path",
        str(opts.lib_dir),
    ]
    if opts.offline:
        argv.append("--offline")
    if opts.optional:
        argv.append("--optional")
    if opts.package:
        argv += ["--package", opts.package]
    return _run_cargo(argv, cwd=cwd, dry_run=opts.dry_run)


def run_add_dynamic(opts: AddDynamicOptions, *, cwd: Path) -> int:
    register_workspace_member(opts, cwd=cwd)

    rc = cargo_new_lib(opts, cwd=cwd)
    if rc != 0:
        return rc

    rc = cargo_add_dependency_to_new_lib(opts, cwd=cwd)
    if rc != 0:
        return rc

    modify_dynamic_lib(opts, cwd=cwd)

    return cargo_add_dynamic_library_to_target_package(opts, cwd=cwd)


def cmd_add_dynamic(args: argparse.Namespace) -> int:
    cwd = Path.cwd()
    opts = AddDynamicOptions.from_args(args, cwd=cwd)
    return run_add_dynamic(opts, cwd=cwd)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("crate_name", metavar="DEP", help="Dependency to add as a dylib")
    parser.add_argument(
        "--optional",
        action="store_true",
        help="Mark the dependency as optional. The package name will be exposed as feature of your crate.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Additional (debug) logging."
    )
    parser.add_argument(
        "--offline", action="store_true", help="Run without accessing the network"
    )
    parser.add_argument(
        "--no-default-features",
        action="store_true",
        help="Disable the default features",
    )
    parser.add_argument(
        "-F",
        "--features",
        nargs="+",
        action="extend",
        default=[],
        metavar="FEATURES",
        help="Space or comma separated list of features to activate",
    )
    parser.add_argument(
        "--path", default=None, metavar="PATH", help="Filesystem path to local crate to add"
    )
    parser.add_argument(
        "--rename",
        default=None,
        metavar="NAME",
        help="Rename the dependency (default: <DEP>)",
    )
    parser.add_argument(
        "-n",
        "--name",
        default=None,
        metavar="NAME",
        help="Name of the dynamic library (default: <DEP>-dynamic)",
    )
    parser.add_argument(
        "--lib-dir",
        default=None,
        metavar="DIR",
        help="Directory for the new sub-package (default: <name>)",
    )
    parser.add_argument(
        "-p",
        "--package",
        default=None,
        metavar="SPEC",
        help="Package to modify",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the cargo commands and workspace changes without running them",
    )
    parser.set_defaults(func=cmd_add_dynamic)
