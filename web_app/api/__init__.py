"""JSON API for the shortlink service."""

from .routes import router as api_router

__all__ = ["api_router"]
