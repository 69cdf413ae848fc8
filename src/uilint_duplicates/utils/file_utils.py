"""File utility functions."""

from __future__ import annotations

from pathlib import Path
from typing import Union

PROJECT_MARKERS = ("package.json", ".git")


def _ancestor_with(start: Path, marker: str) -> Path | None:
    for cur in (start, *start.parents):
        if (cur / marker).exists():
            return cur
    return None


def find_project_root(start: Union[str, Path]) -> Path:
    """Find the project root of a file or directory.

    The nearest ancestor holding a ``package.json`` wins, then the nearest one
    holding ``.git``; otherwise the directory of ``start`` itself.
    """
    path = Path(start).resolve()
    base = path if path.is_dir() else path.parent
    for marker in PROJECT_MARKERS:
        found = _ancestor_with(base, marker)
        if found is not None:
            return found
    return base


def to_project_path(path: Union[str, Path], project_root: Union[str, Path]) -> str:
    """POSIX path of ``path`` relative to the project root.

    Paths outside the project are returned absolute.
    """
    p = Path(path)
    root = Path(project_root).resolve()
    if not p.is_absolute():
        p = root / p
    p = p.resolve()
    try:
        return p.relative_to(root).as_posix()
    except ValueError:
        return p.as_posix()


def is_binary_file(path: Path) -> bool:
    """Check if file is binary by looking for null bytes."""
    try:
        with path.open("rb") as f:
            sample = f.read(2048)
        return b"\x00" in sample
    except OSError:
        return True
