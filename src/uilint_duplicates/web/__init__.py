"""HTTP API for uilint-duplicates."""

from .app import app, create_app

__all__ = ["app", "create_app"]
