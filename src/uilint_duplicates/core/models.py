"""Data models for uilint-duplicates."""

from __future__ import annotations

import dataclasses
import hashlib
from typing import Dict, List, Optional


CHUNK_KINDS = (
    "component",
    "component-summary",
    "hook",
    "function",
    "function-summary",
    "function-section",
    "jsx-fragment",
    "jsx-section",
)

SUMMARY_KINDS = frozenset({"component-summary", "function-summary"})
SECTION_KINDS = frozenset({"function-section", "jsx-section"})


def hash_chunk(content: str, file_path: str, start_line: int) -> str:
    """Content address of a chunk: stable while its text and start line are unchanged."""
    payload = f"{file_path}:{start_line}:{content}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:16]


def hash_content(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


@dataclasses.dataclass
class ChunkMetadata:
    """Structural hints extracted from a chunk."""

    is_exported: bool = False
    is_default_export: bool = False
    props: Optional[List[str]] = None
    hooks: Optional[List[str]] = None
    jsx_elements: Optional[List[str]] = None

    def export_only(self) -> "ChunkMetadata":
        return ChunkMetadata(
            is_exported=self.is_exported,
            is_default_export=self.is_default_export,
        )

    def to_dict(self) -> Dict:
        data: Dict = {
            "isExported": self.is_exported,
            "isDefaultExport": self.is_default_export,
        }
        if self.props:
            data["props"] = list(self.props)
        if self.hooks:
            data["hooks"] = list(self.hooks)
        if self.jsx_elements:
            data["jsxElements"] = list(self.jsx_elements)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ChunkMetadata":
        data = data or {}
        return cls(
            is_exported=bool(data.get("isExported", False)),
            is_default_export=bool(data.get("isDefaultExport", False)),
            props=list(data["props"]) if data.get("props") else None,
            hooks=list(data["hooks"]) if data.get("hooks") else None,
            jsx_elements=list(data["jsxElements"]) if data.get("jsxElements") else None,
        )


@dataclasses.dataclass
class CodeChunk:
    """A semantic unit of source code, the unit of indexing and comparison."""

    id: str
    file_path: str
    start_line: int
    end_line: int
    start_column: int
    end_column: int
    kind: str
    name: Optional[str]
    content: str
    metadata: ChunkMetadata = dataclasses.field(default_factory=ChunkMetadata)
    parent_id: Optional[str] = None
    section_index: Optional[int] = None
    section_label: Optional[str] = None

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def to_stored(self) -> "StoredChunk":
        return StoredChunk(
            file_path=self.file_path,
            start_line=self.start_line,
            end_line=self.end_line,
            start_column=self.start_column,
            end_column=self.end_column,
            kind=self.kind,
            name=self.name,
            content_hash=hash_content(self.content),
            metadata=self.metadata,
            parent_id=self.parent_id,
            section_index=self.section_index,
            section_label=self.section_label,
        )


@dataclasses.dataclass
class StoredChunk:
    """Persisted form of a CodeChunk. The content itself is never stored."""

    file_path: str
    start_line: int
    end_line: int
    start_column: int
    end_column: int
    kind: str
    name: Optional[str]
    content_hash: str = ""
    metadata: ChunkMetadata = dataclasses.field(default_factory=ChunkMetadata)
    parent_id: Optional[str] = None
    section_index: Optional[int] = None
    section_label: Optional[str] = None

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def to_dict(self) -> Dict:
        data: Dict = {
            "filePath": self.file_path,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "startColumn": self.start_column,
            "endColumn": self.end_column,
            "kind": self.kind,
            "name": self.name,
            "contentHash": self.content_hash,
            "metadata": self.metadata.to_dict(),
        }
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        if self.section_index is not None:
            data["sectionIndex"] = self.section_index
        if self.section_label is not None:
            data["sectionLabel"] = self.section_label
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "StoredChunk":
        return cls(
            file_path=str(data["filePath"]),
            start_line=int(data["startLine"]),
            end_line=int(data["endLine"]),
            start_column=int(data.get("startColumn", 0)),
            end_column=int(data.get("endColumn", 0)),
            kind=str(data["kind"]),
            name=data.get("name"),
            content_hash=str(data.get("contentHash", "")),
            metadata=ChunkMetadata.from_dict(data.get("metadata")),
            parent_id=data.get("parentId"),
            section_index=data.get("sectionIndex"),
            section_label=data.get("sectionLabel"),
        )


@dataclasses.dataclass(frozen=True)
class QueryResult:
    id: str
    score: float


@dataclasses.dataclass
class IndexStats:
    files_discovered: int = 0
    files_indexed: int = 0
    files_failed: int = 0
    chunks_created: int = 0
    chunks_embedded: int = 0
    chunks_reused: int = 0
    chunks_failed: int = 0
    elapsed_seconds: float = 0.0
