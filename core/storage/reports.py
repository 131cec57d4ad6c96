"""Audit report export.

A report is written as pretty-printed JSON next to a DataReference that
records its SHA256 hash and size. Reading an export back checks the hash
before the report is parsed, so an edited file is never mistaken for the
audit that produced it.
"""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from core.errors import ReportIntegrityError
from core.models.refs import AuditReport, DataReference
from core.observability.logging import get_logger


logger = get_logger(__name__)

REPORT_CONTENT_TYPE = "application/json"


def report_filename(name: str) -> str:
    return f"audit-{name}.json"


def write_report(report: AuditReport, path: Path) -> DataReference:
    """Write a report to ``path``, creating parent directories.

    Returns:
        DataReference with the hash of the bytes written
    """
    payload = report.model_dump_json(indent=2).encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)

    ref = DataReference(
        storage_uri=str(path.absolute()),
        content_hash=hashlib.sha256(payload).hexdigest(),
        content_type=REPORT_CONTENT_TYPE,
        size_bytes=len(payload),
        stored_at=datetime.now(timezone.utc).replace(tzinfo=None),
    )
    logger.info(
        f"Exported audit report to {path.name}",
        extra_fields={"items": len(report.items), "size_bytes": ref.size_bytes},
    )
    return ref


def read_report(ref: DataReference) -> AuditReport:
    """Load an exported report and check it against its reference.

    Raises:
        FileNotFoundError: If the export is gone
        ReportIntegrityError: If the file changed since it was written or
            no longer holds a report
    """
    path = Path(ref.storage_uri)
    payload = path.read_bytes()

    actual = hashlib.sha256(payload).hexdigest()
    if actual != ref.content_hash:
        raise ReportIntegrityError(
            ref.storage_uri,
            f"hash mismatch, expected {ref.content_hash[:12]}, got {actual[:12]}",
        )

    try:
        return AuditReport.model_validate_json(payload)
    except ValidationError as e:
        raise ReportIntegrityError(ref.storage_uri, f"not an audit report ({e.error_count()} errors)") from e


class ReportArchive:
    """Directory of exported audit reports, one file per run or snapshot."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)

    def path_for(self, name: str) -> Path:
        return self.base_path / report_filename(name)

    def export(self, report: AuditReport, name: str) -> DataReference:
        """Write ``report`` as ``audit-<name>.json`` inside the archive."""
        return write_report(report, self.path_for(name))
