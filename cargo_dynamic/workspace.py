#!/usr/bin/env python3
"""Cargo workspace discovery and member registration.

The locator walks upwards from a start directory and stops at the nearest
``Cargo.toml`` that declares a ``[workspace]`` table. On the way it infers the
target package (the package the dylib wrapper gets added to) unless one was
given explicitly.

A workspace is only reported when the target package is part of it, either as
the workspace's own root package or through one of the literal
``workspace.members`` directories. A workspace that does not contain the
target is treated like no workspace at all: the caller skips registration.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Optional, Union

from cargo_dynamic import cli_util as u
from cargo_dynamic.manifest import ManifestDocument, ManifestError, WorkspaceError

logger = logging.getLogger(__name__)


class AmbiguousTargetError(WorkspaceError):
    def __init__(self, manifest_path: Path) -> None:
        super().__init__(
            f"Found workspace {manifest_path} but no target package. "
            "Please specify a package with --package."
        )
        self.manifest_path = manifest_path


class LocateStatus(Enum):
    NO_WORKSPACE = "no-workspace"
    NOT_A_MEMBER = "not-a-member"
    FOUND = "found"


@dataclass
class WorkspaceHandle:
    target_package_name: str
    target_is_root_package: bool
    manifest_path: Path
    document: ManifestDocument

    @property
    def root_dir(self) -> Path:
        return self.manifest_path.parent

    def relative_path_from(self, from_dir: Path) -> Optional[Path]:
        return relative_path_to_workspace_from(self.root_dir, from_dir)

    def add_member(self, member: Union[str, PurePath]) -> bool:
        return add_member(self, member)


@dataclass(frozen=True)
class LocateOutcome:
    status: LocateStatus
    handle: Optional[WorkspaceHandle] = None
    manifest_path: Optional[Path] = None
    target_package_name: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LocateStatus.FOUND


def locate(start_dir: Path, target_name: Optional[str] = None) -> LocateOutcome:
    """Find the workspace that owns the target package.

    Raises AmbiguousTargetError when a workspace manifest is found but no
    target package name was given or could be inferred. Malformed manifests on
    the walk raise ManifestError; read failures propagate as OSError.
    """
    directory = Path(start_dir).resolve()
    target_name = target_name or None
    workspace: Optional[ManifestDocument] = None

    logger.debug("trying to find workspace starting in %s", directory)

    while True:
        manifest_path = directory / u.MANIFEST_FILE_NAME
        if manifest_path.is_file():
            manifest = ManifestDocument.load(manifest_path)
            package_name = manifest.package_name
            if target_name is None and package_name is not None:
                logger.debug("found target package: %s", package_name)
                target_name = package_name
            if manifest.is_workspace:
                logger.debug("found workspace toml at %s", manifest_path)
                workspace = manifest
                break

        parent = directory.parent
        if parent == directory:
            break
        directory = parent

    if workspace is None:
        logger.debug("no workspace found")
        return LocateOutcome(LocateStatus.NO_WORKSPACE, target_package_name=target_name)

    if target_name is None:
        raise AmbiguousTargetError(workspace.path)

    target_is_root_package = workspace.package_name == target_name
    if not is_member(
        workspace.path.parent,
        workspace.members,
        target_name,
        target_is_root_package=target_is_root_package,
    ):
        logger.debug(
            "target package %s is not a member of workspace %s",
            target_name,
            workspace.path,
        )
        return LocateOutcome(
            LocateStatus.NOT_A_MEMBER,
            manifest_path=workspace.path,
            target_package_name=target_name,
        )

    logger.debug(
        "target package %s is in workspace %s. Is it a root package? %s",
        target_name,
        workspace.path,
        target_is_root_package,
    )
    handle = WorkspaceHandle(
        target_package_name=target_name,
        target_is_root_package=target_is_root_package,
        manifest_path=workspace.path,
        document=workspace,
    )
    return LocateOutcome(
        LocateStatus.FOUND,
        handle=handle,
        manifest_path=workspace.path,
        target_package_name=target_name,
    )


def find_workspace(
    start_dir: Path, target_name: Optional[str] = None
) -> Optional[WorkspaceHandle]:
    return locate(start_dir, target_name).handle


def is_member(
    workspace_dir: Path,
    members: list[str],
    target_name: str,
    *,
    target_is_root_package: bool = False,
) -> bool:
    if target_is_root_package:
        return True

    for member in members:
        member_toml = Path(workspace_dir) / member / u.MANIFEST_FILE_NAME
        try:
            manifest = ManifestDocument.load(member_toml)
        except (OSError, ManifestError) as exc:
            logger.debug("skipping member %r: %s", member, exc)
            continue
        if manifest.package_name == target_name:
            return True

    return False


def relative_path_to_workspace_from(
    workspace_root: Path, from_dir: Path
) -> Optional[Path]:
    """Express ``from_dir`` relative to ``workspace_root``.

    ``from_dir`` must exist (it is resolved through the filesystem). Returns
    ``Path()`` when it is the workspace root itself and None when it lies
    outside of the workspace tree.
    """
    directory = Path(from_dir).resolve(strict=True)
    root = Path(workspace_root).resolve()
    parts: deque[str] = deque()

    while directory != root:
        parent = directory.parent
        if parent == directory:
            return None
        parts.appendleft(directory.name)
        directory = parent

    return Path(*parts)


def add_member(handle: WorkspaceHandle, member: Union[str, PurePath]) -> bool:
    """Append ``member`` to ``workspace.members`` and rewrite the manifest.

    Returns False without touching the file when the workspace declares no
    member list. A member list of the wrong type raises WorkspaceError.
    """
    members = handle.document.members_array()
    if members is None:
        logger.warning(
            "workspace %s has no members list; not registering %s",
            handle.manifest_path,
            member,
        )
        return False

    value = member.as_posix() if isinstance(member, PurePath) else str(member)
    members.append(value)
    handle.document.save()
    logger.debug("added %s to members of %s", value, handle.manifest_path)
    return True
