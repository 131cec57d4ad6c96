"""API Package.

FastAPI server for the linen audit engine.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
