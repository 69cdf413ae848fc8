"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from uilint_duplicates.indexing import build_index
from uilint_duplicates.storage import IndexCache
from uilint_duplicates.web.app import create_app
from uilint_duplicates.web.routes import indexing

from conftest import FakeEmbedder


@pytest.fixture
def client():
    return TestClient(create_app(cache=IndexCache()))


@pytest.fixture
def indexed(duplicated_project, cfg, fake_embedder):
    build_index(duplicated_project, cfg, embedder=fake_embedder)
    return duplicated_project


class TestStats:
    def test_no_index(self, client, project):
        response = client.get("/api/index/stats", params={"path": str(project)})
        assert response.status_code == 200
        data = response.json()
        assert data["hasIndex"] is False
        assert data["totalChunks"] == 0

    def test_with_index(self, client, indexed):
        data = client.get("/api/index/stats", params={"path": str(indexed)}).json()
        assert data["hasIndex"] is True
        assert data["totalFiles"] == 3
        assert data["embeddingModel"] == "fake-embed"

    def test_missing_project(self, client, tmp_path):
        response = client.get("/api/index/stats", params={"path": str(tmp_path / "nope")})
        assert response.status_code == 404


class TestIndexing:
    def test_start_indexing(self, client, duplicated_project, monkeypatch):
        monkeypatch.setattr(
            "uilint_duplicates.indexing.indexer.make_embedder",
            lambda cfg, model_name=None: FakeEmbedder(),
        )
        response = client.post("/api/index", json={"path": str(duplicated_project)})
        assert response.status_code == 200
        assert response.json()["path"] == str(duplicated_project.resolve())

        # background tasks run before TestClient returns
        stats = client.get("/api/index/stats", params={"path": str(duplicated_project)}).json()
        assert stats["hasIndex"] is True
        assert stats["totalChunks"] == 3

    def test_progress_without_job(self, client, project):
        response = client.get("/api/index/progress", params={"path": str(project)})
        assert response.status_code == 404

    def test_not_a_directory(self, client, write_file):
        path = write_file("src/a.ts", "export const a = 1;\n")
        response = client.post("/api/index", json={"path": str(path)})
        assert response.status_code == 400


class TestDuplicates:
    def test_no_index(self, client, project):
        response = client.post("/api/duplicates", json={"path": str(project)})
        assert response.status_code == 404
        assert "No index" in response.json()["detail"]

    def test_groups(self, client, indexed):
        response = client.post("/api/duplicates", json={"path": str(indexed), "threshold": 0.9})
        assert response.status_code == 200
        groups = response.json()["groups"]
        assert len(groups) == 1
        assert groups[0]["kind"] == "component"
        assert {m["filePath"] for m in groups[0]["members"]} == {
            "src/components/UserCard.tsx",
            "src/legacy/UserCard.tsx",
        }

    def test_invalid_threshold(self, client, indexed):
        response = client.post("/api/duplicates", json={"path": str(indexed), "threshold": 2})
        assert response.status_code == 422


class TestSearch:
    def test_search(self, client, indexed, monkeypatch):
        monkeypatch.setattr("uilint_duplicates.api.make_embedder", lambda cfg, model_name=None: FakeEmbedder())
        response = client.post(
            "/api/search",
            json={"path": str(indexed), "query": "clamp value min max number", "threshold": 0.1},
        )
        assert response.status_code == 200
        assert response.json()["results"][0]["filePath"] == "src/utils/math.ts"

    def test_similar(self, client, indexed):
        response = client.post(
            "/api/similar",
            json={"path": str(indexed), "file_path": "src/components/UserCard.tsx", "line": 2},
        )
        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["filePath"] for r in results] == ["src/legacy/UserCard.tsx"]
        assert results[0]["score"] == pytest.approx(1.0)


class TestLint:
    def test_findings(self, client, indexed):
        response = client.post("/api/lint", json={"path": str(indexed), "files": ["src/legacy"]})
        assert response.status_code == 200
        findings = response.json()["findings"]
        assert len(findings) == 1
        assert findings[0]["file_path"] == "src/legacy/UserCard.tsx"
        assert findings[0]["message"].startswith("This component 'UserCard' is 100% similar")

    def test_no_index(self, client, project):
        response = client.post("/api/lint", json={"path": str(project)})
        assert response.status_code == 200
        assert response.json()["findings"] == []


class TestIndexTask:
    def test_unexpected_error_marks_job_failed(self, project, monkeypatch):
        def crash(*args, **kwargs):
            raise RuntimeError("model crashed")

        monkeypatch.setattr(indexing, "index_directory", crash)
        key = str(project.resolve())
        indexing.indexing_progress[key] = {"status": "indexing"}
        try:
            indexing.index_project_task(project.resolve(), False, IndexCache())
            assert indexing.indexing_progress[key]["status"] == "error"
            assert indexing.indexing_progress[key]["error"] == "model crashed"
        finally:
            indexing.indexing_progress.pop(key, None)

    def test_failed_job_can_be_restarted(self, client, project, monkeypatch):
        def crash(*args, **kwargs):
            raise RuntimeError("model crashed")

        monkeypatch.setattr(indexing, "index_directory", crash)
        first = client.post("/api/index", json={"path": str(project)})
        second = client.post("/api/index", json={"path": str(project)})
        indexing.indexing_progress.pop(str(project.resolve()), None)
        assert first.status_code == 200
        assert second.status_code == 200
