"""Small helpers over tree-sitter nodes shared by the chunker and splitter."""

from __future__ import annotations

import re
from typing import Iterator, List, Optional

JSX_ELEMENT_TYPES = {"jsx_element", "jsx_self_closing_element"}
JSX_TAG_TYPES = {"jsx_opening_element", "jsx_self_closing_element"}


def node_text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def iter_nodes(node) -> Iterator:
    """Pre-order walk over named nodes, using an explicit stack."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def unwrap_parens(node):
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if not inner:
            return node
        node = inner[0]
    return node


def jsx_tag_name(element) -> Optional[str]:
    """Tag name of an opening/self-closing element; None for fragments.

    Member (``Foo.Bar``) and namespaced (``svg:rect``) names are kept whole.
    """
    name = element.child_by_field_name("name")
    if name is None:
        return None
    return re.sub(r"\s+", "", node_text(name))


def extract_jsx_elements(node) -> List[str]:
    elements = []
    for n in iter_nodes(node):
        if n.type in JSX_TAG_TYPES:
            tag = jsx_tag_name(n)
            if tag:
                elements.append(tag)
    return unique(elements)
