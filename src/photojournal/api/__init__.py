"""HTTP layer for photojournal."""

from .app import create_app

__all__ = ["create_app"]
