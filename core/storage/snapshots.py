"""Audit snapshot store.

Snapshots are immutable history: they can be appended, listed, read and
deleted, never updated. The store serializes each snapshot to JSON before
handing it to a backend, so nothing the caller holds is shared with the
stored record.

Backends are blind record stores (append / list / delete of opaque string
payloads). Lookup by id and all filtering happen here.
"""

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError
from typing_extensions import Protocol

from core.models.canonical import UNKNOWN_DELIVERY_DATE, AuditSnapshot
from core.models.refs import AuditReport
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import get_metrics


logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_snapshot_id() -> str:
    return uuid.uuid4().hex


# =============================================================================
# Record Backends
# =============================================================================

class RecordStore(Protocol):
    """Opaque persistence surface used by the snapshot store."""

    def append(self, key: str, payload: str) -> None:
        ...

    def list(self) -> List[Tuple[str, str]]:
        ...

    def delete(self, key: str) -> bool:
        ...


class InMemoryRecordStore:
    """Records kept in a dict, in insertion order."""

    def __init__(self):
        self._records: Dict[str, str] = {}
        self._lock = Lock()

    def append(self, key: str, payload: str) -> None:
        with self._lock:
            if key in self._records:
                raise KeyError(f"Record already exists: {key}")
            self._records[key] = payload

    def list(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._records.items())

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None


class SqliteRecordStore:
    """Records kept in a SQLite table, one row per snapshot.

    A connection is opened per call, so every write is its own transaction.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _init_db(self) -> None:
        """Create the snapshot table if it does not exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS audit_snapshots (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id TEXT NOT NULL UNIQUE,
                    payload TEXT NOT NULL,
                    stored_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def append(self, key: str, payload: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO audit_snapshots (record_id, payload, stored_at) VALUES (?, ?, ?)",
                (key, payload, _utcnow().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def list(self) -> List[Tuple[str, str]]:
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT record_id, payload FROM audit_snapshots ORDER BY seq")
            return [(row[0], row[1]) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete(self, key: str) -> bool:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM audit_snapshots WHERE record_id = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()


# =============================================================================
# Snapshot Store
# =============================================================================

def snapshot_from_report(report: AuditReport) -> AuditSnapshot:
    """Build an unsaved snapshot from a reconciliation report.

    Items are deep-copied and totals recomputed from them.
    """
    items = [item.model_copy(deep=True) for item in report.items]
    return AuditSnapshot(
        delivery_date=report.delivery_date or UNKNOWN_DELIVERY_DATE,
        items=items,
        total_ordered=sum(item.ordered for item in items),
        total_delivered=sum(item.delivered for item in items),
    )


class SnapshotStore:
    """Append-only history of audit snapshots.

    Args:
        backend: Record store; defaults to an in-memory store
        clock: Returns the creation timestamp for new snapshots
        id_factory: Returns a fresh snapshot id
    """

    def __init__(
        self,
        backend: Optional[RecordStore] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_snapshot_id,
    ):
        self.backend = backend if backend is not None else InMemoryRecordStore()
        self._clock = clock
        self._id_factory = id_factory

    def append(self, snapshot: AuditSnapshot) -> AuditSnapshot:
        """Store a snapshot under a new id and creation timestamp.

        Any id or timestamp on the incoming snapshot is replaced.

        Returns:
            The snapshot as stored
        """
        stored = AuditSnapshot.model_validate(
            {
                **snapshot.model_dump(mode="json", exclude={"id", "created_at"}),
                "id": self._id_factory(),
                "created_at": self._clock(),
            }
        )
        with with_correlation(stage="store", snapshot_id=stored.id):
            self.backend.append(stored.id, stored.model_dump_json())
            get_metrics().record_snapshot_saved()
            logger.info(
                f"Saved audit snapshot with {len(stored.items)} items",
                extra_fields={"delivery_date": stored.delivery_date},
            )
        return stored

    def save_report(self, report: AuditReport) -> AuditSnapshot:
        """Append a snapshot built from a reconciliation report."""
        return self.append(snapshot_from_report(report))

    def list(self) -> List[AuditSnapshot]:
        """All snapshots in insertion order.

        Records that no longer parse are logged and left out.
        """
        snapshots = []
        for key, payload in self.backend.list():
            try:
                snapshots.append(AuditSnapshot.model_validate_json(payload))
            except ValidationError as e:
                logger.warning(
                    f"Unreadable snapshot record {key}: {e.error_count()} validation errors",
                    extra_fields={"record_id": key},
                )
        return snapshots

    def get(self, snapshot_id: str) -> Optional[AuditSnapshot]:
        """Return one snapshot, or None when the id is unknown."""
        for snapshot in self.list():
            if snapshot.id == snapshot_id:
                return snapshot
        return None

    def delete(self, snapshot_id: str) -> bool:
        """Remove a snapshot. Unknown ids are a no-op.

        Returns:
            True if a snapshot was removed
        """
        with with_correlation(stage="store", snapshot_id=snapshot_id):
            removed = self.backend.delete(snapshot_id)
            if removed:
                get_metrics().record_snapshot_deleted()
                logger.info("Deleted audit snapshot")
            else:
                logger.debug("Delete requested for unknown snapshot")
        return removed
