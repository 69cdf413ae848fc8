"""Text payloads handed to the embedding provider."""

from __future__ import annotations

from typing import List

from .models import CodeChunk

# Safe limit for nomic-embed-text's 2048 token context
DEFAULT_MAX_EMBEDDING_CHARS = 6000

TRUNCATION_MARKER = "\n\n[... content truncated for embedding ...]"


def _preamble(chunk: CodeChunk) -> List[str]:
    name = chunk.name or "anonymous"
    props = chunk.metadata.props or []
    label = chunk.section_label or f"section-{chunk.section_index}"

    if chunk.kind == "component":
        parts = [f"React component: {name}"]
        if props:
            parts.append(f"Props: {', '.join(props)}")
        return parts
    if chunk.kind == "component-summary":
        parts = [f"React component summary: {name}"]
        if props:
            parts.append(f"Props: {', '.join(props)}")
        parts.append("(Large component - see sections for JSX details)")
        return parts
    if chunk.kind == "jsx-section":
        return [f"JSX section from {name}: {label}"]
    if chunk.kind == "hook":
        return [f"React hook: {name}"]
    if chunk.kind == "function":
        return [f"Function: {name}"]
    if chunk.kind == "function-summary":
        return [f"Function summary: {name}", "(Large function - split into sections)"]
    if chunk.kind == "function-section":
        return [f"Function section from {name}: {label}"]
    if chunk.kind == "jsx-fragment":
        return [f"JSX fragment: {name}"]
    return []


def prepare_embedding_input(chunk: CodeChunk, max_chars: int = DEFAULT_MAX_EMBEDDING_CHARS) -> str:
    """Build the embedding text for a chunk.

    Structural hints come before the code so they survive truncation, then the
    content, then the JSX elements and hooks found in the chunk.
    """
    parts = _preamble(chunk)
    parts.append(chunk.content)

    if chunk.metadata.jsx_elements:
        parts.append(f"JSX elements: {', '.join(chunk.metadata.jsx_elements)}")
    if chunk.metadata.hooks:
        parts.append(f"Hooks used: {', '.join(chunk.metadata.hooks)}")

    result = "\n\n".join(parts)
    if len(result) > max_chars:
        result = result[:max(max_chars - 50, 0)] + TRUNCATION_MARKER
    return result
