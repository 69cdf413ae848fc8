"""Indexer Interface."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Optional

from ..core.models import IndexStats

# (message, current, total)
ProgressCallback = Callable[[str, Optional[int], Optional[int]], None]


class Indexer:
    """Abstract base class for building the semantic index of a project."""

    def index(
        self,
        project_root: Path,
        cfg: Dict,
        force: bool = False,
        progress: Optional[ProgressCallback] = None,
    ) -> IndexStats:
        raise NotImplementedError
