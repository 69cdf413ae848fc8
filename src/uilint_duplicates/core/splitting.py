"""Splitting of oversized chunks into a summary chunk plus section chunks."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import List, Optional, Sequence, Tuple

from .models import CodeChunk, hash_chunk
from .syntax import JSX_ELEMENT_TYPES, extract_jsx_elements, node_text, unwrap_parens

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 100
MIN_SECTION_LINES = 3

SUMMARY_ELISION = "\n    // ... JSX content (see sections)\n  );"

SIGNIFICANT_CHILD_TYPES = {"jsx_element", "jsx_self_closing_element", "jsx_expression"}

# Tailwind-style utility classes say nothing about what a section is
UTILITY_CLASS = re.compile(r"^(bg-|text-|p-|m-|w-|h-|flex|grid|border|rounded|shadow|hover:|focus:)")

LABEL_MAX_CHARS = 30


def split_chunk(
    fn_node,
    chunk: CodeChunk,
    lines: Sequence[str],
    max_lines: int = DEFAULT_MAX_LINES,
    strategy: str = "jsx-children",
    min_section_lines: int = MIN_SECTION_LINES,
) -> List[CodeChunk]:
    """Split a large chunk into smaller chunks.

    Components are split by the top-level children of their returned JSX when
    ``strategy`` is ``jsx-children``; everything else (and components without
    at least two significant children) falls back to line windows.
    """
    if strategy == "jsx-children" and chunk.kind == "component":
        parts = split_by_jsx_children(fn_node, chunk, lines, min_section_lines)
        if parts:
            return parts
        logger.debug(f"No JSX sections in {chunk.name} ({chunk.file_path}), splitting by lines")

    return split_by_lines(chunk, lines, max_lines, min_section_lines)


# -----------------------------------------------------------------------------
# Structural splitting
# -----------------------------------------------------------------------------

def find_jsx_return(fn_node) -> Optional[Tuple[object, object]]:
    """Locate the returned JSX of a function.

    Returns (node whose start line is the ``return`` line, JSX root) or None.
    """
    body = fn_node.child_by_field_name("body")
    if body is None:
        return None

    # Arrow function with an expression body acts as its own return
    if body.type != "statement_block":
        if fn_node.type != "arrow_function":
            return None
        root = unwrap_parens(body)
        if root is not None and root.type in JSX_ELEMENT_TYPES:
            return body, root
        return None

    for stmt in body.named_children:
        if stmt.type != "return_statement":
            continue
        argument = next((c for c in stmt.named_children if c.type != "comment"), None)
        root = unwrap_parens(argument)
        if root is not None and root.type in JSX_ELEMENT_TYPES:
            return stmt, root
    return None


def significant_children(jsx_root) -> list:
    """Child elements and expression containers of a JSX root; text is skipped."""
    if jsx_root.type != "jsx_element":
        return []
    return [c for c in jsx_root.named_children if c.type in SIGNIFICANT_CHILD_TYPES]


def _string_attribute(attr) -> Tuple[Optional[str], Optional[str]]:
    """(name, string value) of a JSX attribute; value is None unless a string literal."""
    children = attr.named_children
    if not children:
        return None, None
    name = node_text(children[0])
    if len(children) < 2 or children[1].type != "string":
        return name, None
    raw = node_text(children[1])
    return name, raw[1:-1]


def infer_section_label(jsx_child, index: int) -> str:
    """Human-readable label for a JSX section.

    Priority: aria label, first non-utility class name, tag name with index.
    """
    if jsx_child.type == "jsx_element":
        opening = jsx_child.child_by_field_name("open_tag")
    elif jsx_child.type == "jsx_self_closing_element":
        opening = jsx_child
    else:
        return f"section-{index}"
    if opening is None:
        return f"section-{index}"

    attributes = [
        _string_attribute(attr)
        for attr in opening.named_children
        if attr.type == "jsx_attribute"
    ]

    for name, value in attributes:
        if name in ("aria-label", "aria-labelledby") and value:
            return re.sub(r"\s+", "-", value.lower())[:LABEL_MAX_CHARS]

    for name, value in attributes:
        if name in ("className", "class") and value:
            for cls in value.split():
                if not UTILITY_CLASS.match(cls):
                    return cls[:LABEL_MAX_CHARS]

    tag = opening.child_by_field_name("name")
    if tag is not None and tag.type == "identifier":
        return f"{node_text(tag)}-{index}"

    return f"section-{index}"


def create_summary_chunk(chunk: CodeChunk, return_node, lines: Sequence[str]) -> CodeChunk:
    """Signature, hooks and state of a component, with the JSX body elided."""
    return_line = return_node.start_point[0] + 1
    summary_end = min(return_line, chunk.end_line)
    content = "\n".join(lines[chunk.start_line - 1:summary_end]) + SUMMARY_ELISION

    return CodeChunk(
        id=hash_chunk(content, chunk.file_path, chunk.start_line),
        file_path=chunk.file_path,
        start_line=chunk.start_line,
        end_line=summary_end,
        start_column=chunk.start_column,
        end_column=chunk.end_column,
        kind="component-summary",
        name=chunk.name,
        content=content,
        # JSX elements live on the sections
        metadata=dataclasses.replace(chunk.metadata, jsx_elements=None),
    )


def create_jsx_section_chunk(
    chunk: CodeChunk,
    jsx_child,
    lines: Sequence[str],
    index: int,
    parent_id: str,
    min_section_lines: int = MIN_SECTION_LINES,
) -> Optional[CodeChunk]:
    start_line = jsx_child.start_point[0] + 1
    end_line = jsx_child.end_point[0] + 1
    if end_line - start_line + 1 < min_section_lines:
        return None

    content = "\n".join(lines[start_line - 1:end_line])
    metadata = chunk.metadata.export_only()
    metadata.jsx_elements = extract_jsx_elements(jsx_child) or None

    return CodeChunk(
        id=hash_chunk(content, chunk.file_path, start_line),
        file_path=chunk.file_path,
        start_line=start_line,
        end_line=end_line,
        start_column=jsx_child.start_point[1],
        end_column=jsx_child.end_point[1],
        kind="jsx-section",
        name=chunk.name,
        content=content,
        metadata=metadata,
        parent_id=parent_id,
        section_index=index,
        section_label=infer_section_label(jsx_child, index),
    )


def split_by_jsx_children(
    fn_node,
    chunk: CodeChunk,
    lines: Sequence[str],
    min_section_lines: int = MIN_SECTION_LINES,
) -> List[CodeChunk]:
    """Summary chunk plus one section per significant top-level JSX child.

    Returns an empty list when the component has fewer than two such children.
    """
    found = find_jsx_return(fn_node)
    if found is None:
        return []
    return_node, jsx_root = found

    children = significant_children(jsx_root)
    if len(children) < 2:
        return []

    summary = create_summary_chunk(chunk, return_node, lines)
    parts = [summary]
    for index, child in enumerate(children):
        section = create_jsx_section_chunk(chunk, child, lines, index, summary.id, min_section_lines)
        if section is not None:
            parts.append(section)
    return parts


# -----------------------------------------------------------------------------
# Line windows
# -----------------------------------------------------------------------------

def split_by_lines(
    chunk: CodeChunk,
    lines: Sequence[str],
    max_lines: int = DEFAULT_MAX_LINES,
    min_section_lines: int = MIN_SECTION_LINES,
) -> List[CodeChunk]:
    """Split a chunk into overlapping windows of at most ``max_lines`` lines."""
    if chunk.line_count <= max_lines:
        return [chunk]

    is_markup = chunk.kind in ("component", "jsx-fragment")
    summary_kind = "component-summary" if is_markup else "function-summary"
    section_kind = "jsx-section" if is_markup else "function-section"

    # 10 lines, or 20% of the budget when that is smaller
    overlap = min(10, max_lines // 5)
    step = max_lines - overlap

    parts: List[CodeChunk] = []
    current_start = chunk.start_line
    section_index = 0

    while current_start <= chunk.end_line:
        current_end = min(current_start + max_lines - 1, chunk.end_line)
        content = "\n".join(lines[current_start - 1:current_end])
        is_last = current_end == chunk.end_line
        end_column = chunk.end_column if is_last else len(lines[current_end - 1])

        if section_index == 0:
            parts.append(CodeChunk(
                id=hash_chunk(content, chunk.file_path, current_start),
                file_path=chunk.file_path,
                start_line=current_start,
                end_line=current_end,
                start_column=chunk.start_column,
                end_column=end_column,
                kind=summary_kind,
                name=chunk.name,
                content=content,
                metadata=chunk.metadata,
            ))
        elif current_end - current_start + 1 >= min_section_lines:
            parts.append(CodeChunk(
                id=hash_chunk(content, chunk.file_path, current_start),
                file_path=chunk.file_path,
                start_line=current_start,
                end_line=current_end,
                start_column=0,
                end_column=end_column,
                kind=section_kind,
                name=chunk.name,
                content=content,
                metadata=chunk.metadata.export_only(),
                parent_id=parts[0].id,
                section_index=section_index,
                section_label=f"lines-{current_start}-{current_end}",
            ))

        if is_last:
            break
        section_index += 1
        # Overlap with the previous window, but never fall behind the fixed stride
        current_start = max(current_end - overlap + 1, chunk.start_line + section_index * step)

    return parts
