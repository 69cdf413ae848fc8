"""Tests for chunk extraction from TS/JS/JSX sources."""

from uilint_duplicates.core import ChunkingOptions, chunk_file
from uilint_duplicates.core.chunking import get_language_for_file
from uilint_duplicates.core.models import hash_chunk

USER_CARD = """\
import { useState } from "react";

export function UserCard({ user, onSelect }: Props) {
  const [open, setOpen] = useState(false);
  return (
    <div className="card">
      <Avatar src={user.avatar} />
      <h3>{user.name}</h3>
    </div>
  );
}
"""

TOGGLE_HOOK = """\
export const useToggle = (initial = false) => {
  const [on, setOn] = useState(initial);
  const toggle = useCallback(() => setOn((v) => !v), []);
  return { on, toggle };
};
"""

FORMAT_PRICE = """\
function formatPrice(amount: number, currency: string): string {
  const rounded = Math.round(amount * 100) / 100;
  return `${currency} ${rounded.toFixed(2)}`;
}
"""


def _only(chunks):
    assert len(chunks) == 1, chunks
    return chunks[0]


class TestLanguage:
    def test_extensions(self):
        assert get_language_for_file("a/B.tsx") == "tsx"
        assert get_language_for_file("a/b.ts") == "typescript"
        assert get_language_for_file("a/b.jsx") == "javascript"
        assert get_language_for_file("a/b.mjs") == "javascript"
        assert get_language_for_file("a/b.vue") is None


class TestClassification:
    def test_component(self):
        chunk = _only(chunk_file("src/UserCard.tsx", USER_CARD))
        assert chunk.kind == "component"
        assert chunk.name == "UserCard"
        assert chunk.start_line == 3
        assert chunk.end_line == 11
        assert chunk.content.startswith("export function UserCard")
        assert chunk.file_path == "src/UserCard.tsx"

    def test_component_metadata(self):
        chunk = _only(chunk_file("src/UserCard.tsx", USER_CARD))
        meta = chunk.metadata
        assert meta.is_exported is True
        assert meta.is_default_export is False
        assert meta.props == ["user", "onSelect"]
        assert meta.hooks == ["useState"]
        assert meta.jsx_elements == ["div", "Avatar", "h3"]

    def test_hook(self):
        chunk = _only(chunk_file("src/useToggle.ts", TOGGLE_HOOK))
        assert chunk.kind == "hook"
        assert chunk.name == "useToggle"
        assert chunk.metadata.is_exported is True
        assert chunk.metadata.hooks == ["useState", "useCallback"]

    def test_plain_function(self):
        chunk = _only(chunk_file("src/format.ts", FORMAT_PRICE))
        assert chunk.kind == "function"
        assert chunk.name == "formatPrice"
        assert chunk.metadata.is_exported is False
        assert chunk.metadata.jsx_elements is None

    def test_lowercase_jsx_function_is_fragment(self):
        source = (
            "const renderRow = (item) => {\n"
            "  const label = item.label;\n"
            "  return <li>{label}</li>;\n"
            "};\n"
        )
        chunk = _only(chunk_file("src/rows.jsx", source))
        assert chunk.kind == "jsx-fragment"
        assert chunk.name == "renderRow"


class TestExports:
    def test_default_export_declaration(self):
        source = (
            "export default function Page() {\n"
            "  const title = 'Home';\n"
            "  return <main>{title}</main>;\n"
            "}\n"
        )
        chunk = _only(chunk_file("app/page.tsx", source))
        assert chunk.metadata.is_exported is True
        assert chunk.metadata.is_default_export is True

    def test_export_clause_and_default_identifier(self):
        source = (
            "function Header() {\n"
            "  const x = 1;\n"
            "  return <header>{x}</header>;\n"
            "}\n"
            "function Footer() {\n"
            "  const y = 2;\n"
            "  return <footer>{y}</footer>;\n"
            "}\n"
            "export { Header };\n"
            "export default Footer;\n"
        )
        chunks = {c.name: c for c in chunk_file("src/layout.tsx", source)}
        assert chunks["Header"].metadata.is_exported is True
        assert chunks["Header"].metadata.is_default_export is False
        assert chunks["Footer"].metadata.is_exported is True
        assert chunks["Footer"].metadata.is_default_export is True


class TestFiltering:
    def test_short_units_dropped(self):
        source = "export const add = (a, b) => a + b;\n" + FORMAT_PRICE
        chunks = chunk_file("src/math.ts", source)
        assert [c.name for c in chunks] == ["formatPrice"]

    def test_min_lines_option(self):
        assert chunk_file("src/format.ts", FORMAT_PRICE, ChunkingOptions(min_lines=5)) == []

    def test_anonymous_default_export(self):
        source = (
            "export default function () {\n"
            "  const n = 1;\n"
            "  return <div>{n}</div>;\n"
            "}\n"
        )
        assert chunk_file("src/anon.tsx", source) == []
        chunk = _only(chunk_file("src/anon.tsx", source, ChunkingOptions(include_anonymous=True)))
        assert chunk.name is None
        assert chunk.kind == "jsx-fragment"

    def test_kind_filter(self):
        source = TOGGLE_HOOK + FORMAT_PRICE
        chunks = chunk_file("src/mixed.ts", source, ChunkingOptions(kinds=["hook"]))
        assert [c.kind for c in chunks] == ["hook"]


class TestFailures:
    def test_syntax_error_yields_nothing(self):
        assert chunk_file("src/Broken.tsx", "export function Broken( {\n  return <div>\n") == []

    def test_empty_file(self):
        assert chunk_file("src/empty.ts", "") == []


class TestIds:
    def test_deterministic(self):
        first = chunk_file("src/format.ts", FORMAT_PRICE)
        second = chunk_file("src/format.ts", FORMAT_PRICE)
        assert [c.id for c in first] == [c.id for c in second]

    def test_id_is_content_path_and_line(self):
        chunk = _only(chunk_file("src/format.ts", FORMAT_PRICE))
        assert chunk.id == hash_chunk(chunk.content, "src/format.ts", 1)
        assert len(chunk.id) == 16

    def test_id_changes_with_path_and_position(self):
        base = _only(chunk_file("src/format.ts", FORMAT_PRICE)).id
        moved = _only(chunk_file("src/format.ts", "\n" + FORMAT_PRICE)).id
        renamed = _only(chunk_file("src/other.ts", FORMAT_PRICE)).id
        assert len({base, moved, renamed}) == 3
