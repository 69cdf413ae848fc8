"""Chunk extraction for TypeScript/JavaScript (JSX) files using tree-sitter.

A file is parsed once; every declared function-like unit (function
declarations, variables initialised with arrow functions or function
expressions, anonymous default exports) becomes a CodeChunk classified as a
component, hook, JSX fragment or plain function.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from typing import Dict, List, Optional, Sequence, Set, Tuple

import tree_sitter_language_pack

from .models import ChunkMetadata, CodeChunk, hash_chunk
from .splitting import split_chunk
from .syntax import (
    JSX_ELEMENT_TYPES,
    JSX_TAG_TYPES,
    iter_nodes,
    jsx_tag_name,
    node_text,
    unique,
)

logger = logging.getLogger(__name__)

EXT_TO_LANG = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

# Grammar used when the extension is unknown; accepts both TS and JSX syntax.
FALLBACK_LANGUAGE = "tsx"

FUNCTION_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration"}
FUNCTION_EXPRESSION_TYPES = {"arrow_function", "function_expression", "function", "generator_function"}
VARIABLE_DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}

HOOK_NAME = re.compile(r"^use[A-Z]")
COMPONENT_NAME = re.compile(r"^[A-Z]")


def get_language_for_file(filename: str) -> Optional[str]:
    """Get tree-sitter language name from file extension."""
    _, ext = os.path.splitext(filename)
    return EXT_TO_LANG.get(ext.lower())


def parse_source(content: str, language: str):
    """Parse source text and return the tree-sitter root node."""
    parser = tree_sitter_language_pack.get_parser(language)
    tree = parser.parse(content.encode("utf-8"))
    return tree.root_node


# -----------------------------------------------------------------------------
# Exports
# -----------------------------------------------------------------------------

@dataclasses.dataclass
class ExportTable:
    """Names exported by a file, collected before the main traversal."""

    names: Set[str] = dataclasses.field(default_factory=set)
    default_name: Optional[str] = None

    def is_exported(self, name: Optional[str]) -> bool:
        return name is not None and (name in self.names or name == self.default_name)

    def is_default(self, name: Optional[str]) -> bool:
        return name is not None and name == self.default_name


def _declaration_names(decl) -> List[str]:
    names: List[str] = []
    if decl.type in VARIABLE_DECLARATION_TYPES:
        for declarator in decl.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.append(node_text(name))
    else:
        name = decl.child_by_field_name("name")
        if name is not None:
            names.append(node_text(name))
    return names


def _is_default_export(stmt) -> bool:
    return any(child.type == "default" for child in stmt.children)


def collect_exports(root) -> ExportTable:
    """Record every named export and the default export identifier of a program."""
    exports = ExportTable()
    for stmt in root.named_children:
        if stmt.type != "export_statement":
            continue

        decl = stmt.child_by_field_name("declaration")
        if _is_default_export(stmt):
            value = stmt.child_by_field_name("value")
            if decl is not None:
                names = _declaration_names(decl)
                if names:
                    exports.default_name = names[0]
            elif value is not None and value.type == "identifier":
                exports.default_name = node_text(value)
            continue

        if decl is not None:
            exports.names.update(_declaration_names(decl))

        for clause in stmt.named_children:
            if clause.type != "export_clause":
                continue
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                local = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if local is None:
                    continue
                exported = node_text(alias if alias is not None else local)
                if exported == "default":
                    exports.default_name = node_text(local)
                else:
                    exports.names.add(exported)
    return exports


# -----------------------------------------------------------------------------
# Classification and metadata
# -----------------------------------------------------------------------------

def contains_jsx(node) -> bool:
    return any(n.type in JSX_ELEMENT_TYPES for n in iter_nodes(node))


def classify_function(name: Optional[str], node) -> str:
    if name and HOOK_NAME.match(name):
        return "hook"

    has_jsx = contains_jsx(node)
    if name and COMPONENT_NAME.match(name) and has_jsx:
        return "component"
    if has_jsx:
        return "jsx-fragment"
    return "function"


def _first_parameter(fn_node):
    single = fn_node.child_by_field_name("parameter")
    if single is not None:
        return single
    params = fn_node.child_by_field_name("parameters")
    if params is None:
        return None
    for child in params.named_children:
        if child.type != "comment":
            return child
    return None


def extract_props_from_param(param) -> List[str]:
    """Field names of a destructured first parameter (or the parameter's own name)."""
    if param.type in ("required_parameter", "optional_parameter"):
        pattern = param.child_by_field_name("pattern")
        if pattern is None:
            return []
        param = pattern
    if param.type == "assignment_pattern":
        left = param.child_by_field_name("left")
        if left is None:
            return []
        param = left

    props: List[str] = []
    if param.type == "object_pattern":
        for prop in param.named_children:
            if prop.type == "shorthand_property_identifier_pattern":
                props.append(node_text(prop))
            elif prop.type == "pair_pattern":
                key = prop.child_by_field_name("key")
                if key is not None:
                    props.append(node_text(key))
            elif prop.type == "object_assignment_pattern":
                left = prop.child_by_field_name("left")
                if left is not None:
                    props.append(node_text(left))
            elif prop.type == "rest_pattern":
                target = prop.named_children[0] if prop.named_children else None
                if target is not None and target.type == "identifier":
                    props.append(f"...{node_text(target)}")
    elif param.type == "identifier":
        props.append(node_text(param))
    return props


def extract_metadata(fn_node, name: Optional[str], exports: ExportTable) -> ChunkMetadata:
    metadata = ChunkMetadata(
        is_exported=exports.is_exported(name),
        is_default_export=exports.is_default(name),
    )

    first = _first_parameter(fn_node)
    if first is not None:
        props = extract_props_from_param(first)
        if props:
            metadata.props = props

    hooks: List[str] = []
    elements: List[str] = []
    for n in iter_nodes(fn_node):
        if n.type == "call_expression":
            callee = n.child_by_field_name("function")
            if callee is not None and callee.type == "identifier":
                callee_name = node_text(callee)
                if HOOK_NAME.match(callee_name):
                    hooks.append(callee_name)
        elif n.type in JSX_TAG_TYPES:
            tag = jsx_tag_name(n)
            if tag:
                elements.append(tag)

    if hooks:
        metadata.hooks = unique(hooks)
    if elements:
        metadata.jsx_elements = unique(elements)
    return metadata


# -----------------------------------------------------------------------------
# Extraction
# -----------------------------------------------------------------------------

def find_function_units(node) -> List[Tuple[object, Optional[str], object]]:
    """Function-like units declared directly by ``node``.

    Returns (function node, declared name, node whose span is the chunk) tuples.
    """
    units = []
    if node.type in FUNCTION_DECLARATION_TYPES:
        name = node.child_by_field_name("name")
        if name is not None:
            units.append((node, node_text(name), node))
    elif node.type in VARIABLE_DECLARATION_TYPES:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if (
                name is not None
                and name.type == "identifier"
                and value is not None
                and value.type in FUNCTION_EXPRESSION_TYPES
            ):
                # The whole declaration statement is the chunk
                units.append((value, node_text(name), node))
    elif node.type == "export_statement" and _is_default_export(node):
        value = node.child_by_field_name("value")
        if value is not None and value.type in FUNCTION_EXPRESSION_TYPES:
            units.append((value, None, value))
    return units


def build_chunk(
    fn_node,
    name: Optional[str],
    location,
    file_path: str,
    lines: Sequence[str],
    exports: ExportTable,
) -> CodeChunk:
    start_line = location.start_point[0] + 1
    end_line = location.end_point[0] + 1
    content = "\n".join(lines[start_line - 1:end_line])

    return CodeChunk(
        id=hash_chunk(content, file_path, start_line),
        file_path=file_path,
        start_line=start_line,
        end_line=end_line,
        start_column=location.start_point[1],
        end_column=location.end_point[1],
        kind=classify_function(name, fn_node),
        name=name,
        content=content,
        metadata=extract_metadata(fn_node, name, exports),
    )


def should_include_chunk(
    chunk: CodeChunk,
    min_lines: int,
    include_anonymous: bool,
    kinds: Optional[Sequence[str]] = None,
) -> bool:
    if chunk.line_count < min_lines:
        return False
    if not include_anonymous and chunk.name is None:
        return False
    if kinds and chunk.kind not in kinds:
        return False
    return True


# -----------------------------------------------------------------------------
# Interfaces
# -----------------------------------------------------------------------------

@dataclasses.dataclass
class ChunkingOptions:
    min_lines: int = 3
    max_lines: int = 100
    min_section_lines: int = 3
    include_anonymous: bool = False
    kinds: Optional[List[str]] = None
    split_strategy: str = "jsx-children"

    @classmethod
    def from_config(cls, cfg: Dict) -> "ChunkingOptions":
        chunking = cfg.get("chunking", {})
        kinds = chunking.get("kinds")
        return cls(
            min_lines=int(chunking.get("min_lines", 3)),
            max_lines=int(chunking.get("max_lines", 100)),
            min_section_lines=int(chunking.get("min_section_lines", 3)),
            include_anonymous=bool(chunking.get("include_anonymous", False)),
            kinds=list(kinds) if kinds else None,
            split_strategy=str(chunking.get("split_strategy", "jsx-children")),
        )


class Chunker:
    """Abstract base class for source chunking."""

    def chunk(self, file_path: str, content: str) -> List[CodeChunk]:
        """Extract code chunks from one file.

        Args:
            file_path: Path recorded on every chunk (and used to pick the grammar)
            content: Source text of the file

        Returns:
            Chunks in document order, already split to the line budget
        """
        raise NotImplementedError


class DefaultChunker(Chunker):
    """Tree-sitter chunker for TS/JS/JSX/TSX sources."""

    def __init__(self, options: Optional[ChunkingOptions] = None):
        self.options = options or ChunkingOptions()

    def chunk(self, file_path: str, content: str) -> List[CodeChunk]:
        opts = self.options
        language = get_language_for_file(file_path) or FALLBACK_LANGUAGE

        try:
            root = parse_source(content, language)
        except Exception as e:
            logger.warning(f"Failed to parse {file_path}: {e}")
            return []

        if root.has_error:
            logger.warning(f"Failed to parse {file_path}: syntax errors in {language} source")
            return []

        lines = content.split("\n")
        exports = collect_exports(root)
        chunks: List[CodeChunk] = []

        for node in iter_nodes(root):
            for fn_node, name, location in find_function_units(node):
                chunk = build_chunk(fn_node, name, location, file_path, lines, exports)
                if not should_include_chunk(chunk, opts.min_lines, opts.include_anonymous, opts.kinds):
                    continue

                if chunk.line_count > opts.max_lines:
                    parts = split_chunk(
                        fn_node,
                        chunk,
                        lines,
                        max_lines=opts.max_lines,
                        strategy=opts.split_strategy,
                        min_section_lines=opts.min_section_lines,
                    )
                    chunks.extend(
                        c for c in parts
                        if should_include_chunk(c, opts.min_lines, opts.include_anonymous, opts.kinds)
                    )
                else:
                    chunks.append(chunk)

        logger.debug(f"Extracted {len(chunks)} chunks from {file_path}")
        return chunks


def chunk_file(file_path: str, content: str, options: Optional[ChunkingOptions] = None) -> List[CodeChunk]:
    """Extract chunks from a file (Functional Wrapper)."""
    chunker = DefaultChunker(options)
    return chunker.chunk(file_path, content)
