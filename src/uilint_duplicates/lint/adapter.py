"""Lint-time duplicate reporting against a prebuilt index.

The adapter is driven by a linting pass: ``begin_file`` once per file, ``visit``
for every function-like node, ``end_file`` when the file is done. No embedding
happens here; only stored vectors are compared.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

from ..config import DEFAULT_INDEX_DIR
from ..search import BruteForceSearch, SimilaritySearch
from ..storage import IndexCache, VectorIndex, default_cache
from ..utils import find_project_root, to_project_path

logger = logging.getLogger(__name__)

ANONYMOUS = "(anonymous)"


@dataclasses.dataclass(frozen=True)
class Finding:
    file_path: str
    line: int
    kind: str
    name: str
    similarity: int
    other_name: str
    other_location: str
    chunk_id: str
    match_id: str

    @property
    def message(self) -> str:
        return (
            f"This {self.kind} '{self.name}' is {self.similarity}% similar to "
            f"'{self.other_name}' at {self.other_location}. Consider consolidating."
        )

    def to_dict(self) -> Dict:
        data = dataclasses.asdict(self)
        data["message"] = self.message
        return data


class IncrementalQueryAdapter:
    """Reports each indexed chunk of a file at most once."""

    def __init__(
        self,
        cache: Optional[IndexCache] = None,
        threshold: float = 0.85,
        min_lines: int = 3,
        index_dir: str = DEFAULT_INDEX_DIR,
        search: Optional[SimilaritySearch] = None,
    ) -> None:
        self.cache = cache if cache is not None else default_cache()
        self.threshold = threshold
        self.min_lines = min_lines
        self.index_dir = index_dir
        self.search = search or BruteForceSearch()

        self.index: Optional[VectorIndex] = None
        self.project_root: Optional[Path] = None
        self.file_path: Optional[str] = None
        self._reported: Set[str] = set()
        self._checked: Set[str] = set()

    @property
    def has_index(self) -> bool:
        return self.index is not None

    def begin_file(self, filename: Union[str, Path], project_root: Optional[Path] = None) -> bool:
        """Start a file. Returns False when the project has no usable index."""
        self.end_file()
        filename = Path(filename).resolve()
        root =Path(project_root).resolve() if project_root is not None else find_project_root(filename)
        self.project_root = root
        self.file_path = to_project_path(filename, root)
        self.index = self.cache.get(root, self.index_dir)
        if self.index is None:
            logger.debug(f"No semantic index for {root}; skipping {self.file_path}")
        return self.index is not None

    def visit(self, line: int, name: Optional[str] = None) -> List[Finding]:
        """New findings for a node starting on ``line``."""
        index = self.index
        if index is None or self.file_path is None:
            return []

        findings: List[Finding] = []
        for chunk_id in index.chunks_at(self.file_path, line):
            if chunk_id in self._reported or chunk_id in self._checked:
                continue
            self._checked.add(chunk_id)

            finding = self._best_match(index, chunk_id, line, name)
            if finding is not None:
                self._reported.add(chunk_id)
                findings.append(finding)
        return findings

    def _best_match(self, index: VectorIndex, chunk_id: str, line: int, name: Optional[str]) -> Optional[Finding]:
        for result in self.search.query(index, chunk_id, self.threshold):
            other = index.metadata.get(result.id)
            if other is None or other.line_count < self.min_lines:
                continue
            chunk = index.metadata[chunk_id]
            return Finding(
                file_path=self.file_path,
                line=line,
                kind=chunk.kind,
                name=name or chunk.name or ANONYMOUS,
                similarity=round(result.score * 100),
                other_name=other.name or ANONYMOUS,
                other_location=f"{other.file_path}:{other.start_line}",
                chunk_id=chunk_id,
                match_id=result.id,
            )
        return None

    def end_file(self) -> None:
        self.file_path = None
        self._reported.clear()
        self._checked.clear()
