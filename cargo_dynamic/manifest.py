#!/usr/bin/env python3
"""Order-preserving access to one ``Cargo.toml`` file.

Backed by tomlkit so that a parse / mutate / dump cycle keeps comments,
whitespace and key order of everything that was not touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Array
from tomlkit.toml_document import TOMLDocument


class WorkspaceError(RuntimeError):
    pass


class ManifestError(WorkspaceError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to parse manifest {path}: {reason}")
        self.path = path
        self.reason = reason


def _is_table_like(value: Any) -> bool:
    # Table, InlineTable and super tables created by dotted keys are all dicts.
    return isinstance(value, dict)


@dataclass
class ManifestDocument:
    path: Path
    doc: TOMLDocument

    @classmethod
    def load(cls, path: Path) -> "ManifestDocument":
        """Read and parse ``path``.

        Raises OSError when the file cannot be read and ManifestError when
        its content is not valid TOML.
        """
        try:
            text = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ManifestError(path, f"not valid UTF-8 ({exc})") from exc
        return cls.parse(text, path=path)

    @classmethod
    def parse(cls, text: str, *, path: Path) -> "ManifestDocument":
        try:
            doc = tomlkit.parse(text)
        except TOMLKitError as exc:
            raise ManifestError(path, str(exc)) from exc
        return cls(path=path, doc=doc)

    @property
    def is_workspace(self) -> bool:
        return _is_table_like(self.doc.get("workspace"))

    @property
    def package_name(self) -> Optional[str]:
        package = self.doc.get("package")
        if not _is_table_like(package):
            return None
        name = package.get("name")
        if isinstance(name, str) and name:
            return str(name)
        return None

    def members_array(self) -> Optional[Array]:
        """Return the live ``workspace.members`` array.

        None when the key is absent. Raises WorkspaceError when the key exists
        but does not hold an array.
        """
        workspace = self.doc.get("workspace")
        if not _is_table_like(workspace) or "members" not in workspace:
            return None
        members = workspace["members"]
        if not isinstance(members, list):
            raise WorkspaceError(
                f"workspace.members in {self.path} is not an array "
                f"(found {type(members).__name__})"
            )
        return members

    @property
    def members(self) -> list[str]:
        workspace = self.doc.get("workspace")
        if not _is_table_like(workspace):
            return []
        members = workspace.get("members")
        if not isinstance(members, list):
            return []
        return [str(m) for m in members if isinstance(m, str)]

    def dumps(self) -> str:
        return tomlkit.dumps(self.doc)

    def save(self) -> None:
        # One write of the whole document; partial member lists are never written.
        self.path.write_text(self.dumps(), encoding="utf-8")
