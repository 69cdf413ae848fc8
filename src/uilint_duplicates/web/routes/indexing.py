"""Indexing routes with SSE support."""

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from ...api import get_index_stats, index_directory
from ...config import load_config
from ...storage import IndexCache
from ..deps import get_cache, resolve_project
from ..schemas import IndexRequest, IndexStartedResponse, IndexStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/index")

# Progress of running and finished indexing jobs, keyed by project root
indexing_progress: Dict[str, Dict] = {}
_progress_lock = threading.Lock()


def _update_progress(key: str, **fields) -> None:
    with _progress_lock:
        indexing_progress.setdefault(key, {}).update(fields)


def _snapshot(key: str) -> Optional[Dict]:
    with _progress_lock:
        entry = indexing_progress.get(key)
        return dict(entry) if entry is not None else None


def index_project_task(project_root: Path, force: bool, cache: IndexCache) -> None:
    """Background task that indexes a project and records its progress."""
    key = str(project_root)

    def on_progress(message: str, current: Optional[int], total: Optional[int]) -> None:
        _update_progress(key, message=message, current=current or 0, total=total or 0)

    try:
        cfg = load_config(project_root)
        stats = index_directory(project_root, cfg=cfg, force=force, progress=on_progress, cache=cache)
    except Exception as e:
        logger.exception(f"Indexing {project_root} failed: {e}")
        _update_progress(key, status="error", error=str(e))
        return

    _update_progress(
        key,
        status="indexed",
        message="Done",
        files_indexed=stats.files_indexed,
        chunks_created=stats.chunks_created,
        chunks_embedded=stats.chunks_embedded,
        chunks_reused=stats.chunks_reused,
        chunks_failed=stats.chunks_failed,
        elapsed_seconds=stats.elapsed_seconds,
    )
    logger.info(f"Project {project_root} indexed with {stats.chunks_created} chunks")


@router.post("", response_model=IndexStartedResponse)
async def start_indexing(
    request: IndexRequest,
    background_tasks: BackgroundTasks,
    cache: IndexCache = Depends(get_cache),
):
    """Start indexing a project in the background."""
    project_root = resolve_project(request.path)
    key = str(project_root)

    current = _snapshot(key)
    if current is not None and current.get("status") == "indexing":
        raise HTTPException(status_code=400, detail="Project is already being indexed")

    with _progress_lock:
        indexing_progress[key] = {"status": "indexing", "message": "Queued", "current": 0, "total": 0}

    logger.info(f"Starting background indexing task for {project_root}")
    background_tasks.add_task(index_project_task, project_root, request.force, cache)

    return IndexStartedResponse(message=f"Indexing started for '{project_root.name}'", path=key)


@router.get("/progress")
async def index_progress(path: str):
    """SSE endpoint for real-time indexing progress."""
    key = str(resolve_project(path))
    if _snapshot(key) is None:
        raise HTTPException(status_code=404, detail="No indexing job for this project")

    async def event_generator():
        """Generate SSE events for progress updates."""
        while True:
            progress = _snapshot(key) or {}
            yield {
                "event": "progress",
                "data": json.dumps({"path": key, **progress}),
            }

            if progress.get("status") in ("indexed", "error"):
                break

            await asyncio.sleep(1)

    return EventSourceResponse(event_generator())


@router.get("/stats", response_model=IndexStatsResponse)
def index_stats(path: str, cache: IndexCache = Depends(get_cache)):
    project_root = resolve_project(path)
    return IndexStatsResponse(**get_index_stats(project_root, cfg=load_config(project_root), cache=cache))
