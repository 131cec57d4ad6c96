"""Core storage - report export and the audit snapshot store."""

from core.storage.reports import (
    ReportArchive,
    read_report,
    report_filename,
    write_report,
)

from core.storage.snapshots import (
    RecordStore,
    InMemoryRecordStore,
    SqliteRecordStore,
    SnapshotStore,
    snapshot_from_report,
)

__all__ = [
    "ReportArchive",
    "read_report",
    "report_filename",
    "write_report",
    "RecordStore",
    "InMemoryRecordStore",
    "SqliteRecordStore",
    "SnapshotStore",
    "snapshot_from_report",
]
