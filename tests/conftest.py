import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


def write_manifest(directory: Path, text: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "Cargo.toml"
    path.write_text(text, encoding="utf-8")
    return path


def package_toml(name: str) -> str:
    return f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n'


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    # Resolved so comparisons against resolved paths hold on symlinked tmp dirs.
    return tmp_path.resolve()


@pytest.fixture
def workspace_w(tree: Path) -> Path:
    """Workspace `w` with members `a` (package foo) and `b` (package bar)."""
    root = tree / "w"
    write_manifest(
        root,
        '# workspace root\n[workspace]\nmembers = ["a", "b"]\nresolver = "2"\n',
    )
    write_manifest(root / "a", package_toml("foo"))
    write_manifest(root / "b", package_toml("bar"))
    return root
