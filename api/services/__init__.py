"""API services - shared dependencies for route handlers."""

from api.services.store import get_snapshot_store

__all__ = ["get_snapshot_store"]
