"""
Snapshot store dependency for the API.

Route handlers receive the store through FastAPI's dependency injection so
tests can swap in an in-memory backend with ``app.dependency_overrides``.
"""

from functools import lru_cache

from core.config import get_settings
from core.storage.snapshots import SnapshotStore, SqliteRecordStore


@lru_cache(maxsize=1)
def get_snapshot_store() -> SnapshotStore:
    """SQLite-backed snapshot store at the configured database path."""
    return SnapshotStore(SqliteRecordStore(get_settings().db_path))
