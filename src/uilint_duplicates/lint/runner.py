"""Linting pass: walks source files and feeds function nodes to the adapter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..config import load_config
from ..core.chunking import (
    FALLBACK_LANGUAGE,
    FUNCTION_DECLARATION_TYPES,
    FUNCTION_EXPRESSION_TYPES,
    get_language_for_file,
    parse_source,
)
from ..core.syntax import iter_nodes, node_text
from ..indexing import iter_files
from .adapter import Finding, IncrementalQueryAdapter

logger = logging.getLogger(__name__)


def _function_nodes(root):
    """(start line, name) of every function declaration and function-valued declarator."""
    for node in iter_nodes(root):
        if node.type in FUNCTION_DECLARATION_TYPES:
            name = node.child_by_field_name("name")
            yield node.start_point[0] + 1, node_text(name) if name is not None else None
        elif node.type == "variable_declarator":
            value = node.child_by_field_name("value")
            if value is None or value.type not in FUNCTION_EXPRESSION_TYPES:
                continue
            name = node.child_by_field_name("name")
            ident = node_text(name) if name is not None and name.type == "identifier" else None
            yield value.start_point[0] + 1, ident


def lint_file(
    path: Union[str, Path],
    adapter: IncrementalQueryAdapter,
    project_root: Optional[Path] = None,
) -> List[Finding]:
    """Report semantic duplicates for one file."""
    path = Path(path)
    if not adapter.begin_file(path, project_root=project_root):
        return []

    findings: List[Finding] = []
    try:
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Failed to read {path}: {e}")
            return []

        language = get_language_for_file(path.name) or FALLBACK_LANGUAGE
        try:
            root = parse_source(content, language)
        except Exception as e:
            logger.warning(f"Failed to parse {path}: {e}")
            return []
        if root.has_error:
            logger.warning(f"Failed to parse {path}: syntax errors in {language} source")
            return []

        for line, name in _function_nodes(root):
            findings.extend(adapter.visit(line, name))
    finally:
        adapter.end_file()
    return findings


def lint_paths(
    paths: Iterable[Union[str, Path]],
    adapter: Optional[IncrementalQueryAdapter] = None,
    cfg: Optional[Dict] = None,
    project_root: Optional[Path] = None,
) -> List[Finding]:
    """Lint files and directories; directories are expanded like the indexer does.

    Without ``project_root`` each file is matched against the index of its own
    nearest project.
    """
    cfg = cfg or load_config()
    if adapter is None:
        adapter = IncrementalQueryAdapter(
            threshold=float(cfg["lint"]["threshold"]),
            min_lines=int(cfg["lint"]["min_lines"]),
            index_dir=cfg["index_dir"],
        )

    findings: List[Finding] = []
    for p in paths:
        p = Path(p)
        files = iter_files(p, cfg) if p.is_dir() else [p]
        for f in files:
            findings.extend(lint_file(f, adapter, project_root=project_root))
    return findings
