"""Web layer for the shortlink service."""

from .app_factory import create_app

__all__ = ["create_app"]
