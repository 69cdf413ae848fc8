"""Duplicate, search and lint routes."""

from fastapi import APIRouter, Depends

from ...api import find_duplicates, find_similar_at_location, search_similar
from ...config import load_config
from ...lint import IncrementalQueryAdapter, lint_paths
from ...storage import IndexCache
from ..deps import get_cache, resolve_project
from ..schemas import (
    ChunkResult,
    DuplicateGroupResult,
    DuplicatesRequest,
    DuplicatesResponse,
    FindingResult,
    LintRequest,
    LintResponse,
    SearchRequest,
    SearchResponse,
    SimilarRequest,
)

router = APIRouter()


@router.post("/duplicates", response_model=DuplicatesResponse)
def duplicates(request: DuplicatesRequest, cache: IndexCache = Depends(get_cache)):
    project_root = resolve_project(request.path)
    groups = find_duplicates(
        project_root,
        threshold=request.threshold,
        min_group_size=request.min_group_size,
        kind=request.kind,
        exclude_paths=request.exclude_paths,
        cfg=load_config(project_root),
        cache=cache,
    )
    return DuplicatesResponse(
        groups=[
            DuplicateGroupResult(
                members=[ChunkResult(**m.to_dict()) for m in group.members],
                avgSimilarity=group.avg_similarity,
                kind=group.kind,
            )
            for group in groups
        ]
    )


@router.post("/search", response_model=SearchResponse)
def search(request: SearchRequest, cache: IndexCache = Depends(get_cache)):
    project_root = resolve_project(request.path)
    hits = search_similar(
        request.query,
        project_root,
        top_k=request.top_k,
        threshold=request.threshold,
        cfg=load_config(project_root),
        cache=cache,
    )
    return SearchResponse(results=[ChunkResult(**hit.to_dict()) for hit in hits])


@router.post("/similar", response_model=SearchResponse)
def similar(request: SimilarRequest, cache: IndexCache = Depends(get_cache)):
    project_root = resolve_project(request.path)
    hits = find_similar_at_location(
        project_root,
        request.file_path,
        request.line,
        top_k=request.top_k,
        threshold=request.threshold,
        cfg=load_config(project_root),
        cache=cache,
    )
    return SearchResponse(results=[ChunkResult(**hit.to_dict()) for hit in hits])


@router.post("/lint", response_model=LintResponse)
def lint(request: LintRequest, cache: IndexCache = Depends(get_cache)):
    project_root = resolve_project(request.path)
    cfg = load_config(project_root)
    adapter = IncrementalQueryAdapter(
        cache=cache,
        threshold=request.threshold if request.threshold is not None else float(cfg["lint"]["threshold"]),
        min_lines=int(cfg["lint"]["min_lines"]),
        index_dir=cfg["index_dir"],
    )
    targets = [project_root / f for f in request.files] or [project_root]
    findings = lint_paths(targets, adapter=adapter, cfg=cfg, project_root=project_root)
    return LintResponse(findings=[FindingResult(**f.to_dict()) for f in findings])
