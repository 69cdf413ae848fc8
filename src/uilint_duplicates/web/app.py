"""Main FastAPI application."""

from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import ConfigError, EmbeddingError, NoIndexError
from ..storage import IndexCache, default_cache
from .routes import indexing, search


def create_app(cache: Optional[IndexCache] = None) -> FastAPI:
    app = FastAPI(title="uilint duplicates")
    app.state.cache = cache if cache is not None else default_cache()

    # Setup CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter(prefix="/api")

    api_router.include_router(indexing.router)
    api_router.include_router(search.router)

    app.include_router(api_router)

    @app.exception_handler(NoIndexError)
    async def _no_index(request: Request, exc: NoIndexError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(EmbeddingError)
    async def _embedding_failed(request: Request, exc: EmbeddingError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def _bad_config(request: Request, exc: ConfigError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


app = create_app()
