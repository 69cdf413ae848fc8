"""Request dependencies shared by the routes."""

from pathlib import Path

from fastapi import HTTPException, Request

from ..storage import IndexCache


def get_cache(request: Request) -> IndexCache:
    return request.app.state.cache


def resolve_project(path: str) -> Path:
    project_root = Path(path).expanduser()
    if not project_root.exists():
        raise HTTPException(status_code=404, detail="Project path does not exist")
    if not project_root.is_dir():
        raise HTTPException(status_code=400, detail="Path is not a directory")
    return project_root.resolve()
