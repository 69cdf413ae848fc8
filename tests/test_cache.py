"""Tests for the index cache."""

from uilint_duplicates.storage import IndexCache, resolve_index_dir, write_index


def _write(project, stored_chunk):
    write_index(
        resolve_index_dir(project),
        {"a": stored_chunk("src/a.ts", 1, 5)},
        {"a": [1.0, 0.0]},
        {"embeddingModel": "m"},
    )


class TestIndexCache:
    def test_miss_is_cached(self, project, stored_chunk):
        cache = IndexCache()
        assert cache.get(project) is None
        assert project in cache

        _write(project, stored_chunk)
        assert cache.get(project) is None

        cache.invalidate(project)
        assert project not in cache
        assert cache.get(project) is not None

    def test_same_object_returned(self, project, stored_chunk):
        _write(project, stored_chunk)
        cache = IndexCache()
        assert cache.get(project) is cache.get(project)

    def test_put(self, project, make_index, stored_chunk):
        cache = IndexCache()
        index = make_index({"x": stored_chunk("src/x.ts", 1, 4)}, {"x": [0.0, 1.0]})
        cache.put(project, index)
        assert cache.get(project) is index

    def test_invalidate_all(self, tmp_path):
        cache = IndexCache()
        for name in ("one", "two"):
            (tmp_path / name).mkdir()
            cache.get(tmp_path / name)
        assert len(cache) == 2
        cache.invalidate()
        assert len(cache) == 0

    def test_custom_index_dir(self, project, stored_chunk):
        write_index(
            resolve_index_dir(project, "cache/dups"),
            {"a": stored_chunk("src/a.ts", 1, 5)},
            {"a": [1.0]},
            {},
        )
        cache = IndexCache()
        assert cache.get(project) is None
        assert cache.get(project, "cache/dups") is not None
