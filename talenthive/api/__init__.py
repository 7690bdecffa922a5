"""REST API for the marketplace."""

from .routes import create_app

__all__ = ["create_app"]
