"""
Linen delivery audit from files on disk.

Compares an order list (.xlsx) with one or more delivery documents (PDF)
and prints ordered, delivered and difference per article.

Usage:
    python scripts/run_audit.py --order bestellijst.xlsx --delivery pakbon1.pdf pakbon2.pdf
    python scripts/run_audit.py --order bestellijst.xlsx --delivery pakbon.pdf --save --output
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.config import get_settings
from core.errors import ParsingError, ReportIntegrityError
from core.models.canonical import AuditStatus
from core.models.refs import AuditReport
from core.observability.logging import configure_logging, get_logger
from core.observability.metrics import get_metrics
from core.storage.reports import ReportArchive, read_report, write_report
from core.storage.snapshots import SnapshotStore, SqliteRecordStore
from extraction.runner import read_documents
from reconciliation.engine import run_audit


logger = get_logger("scripts.run_audit")

STATUS_LABELS = {
    AuditStatus.SHORTFALL: "TEKORT",
    AuditStatus.SURPLUS: "OVERSCHOT",
    AuditStatus.CORRECT: "CORRECT",
}


def print_report(report: AuditReport) -> None:
    """Print the audit in a readable format."""
    print(f"\nDelivery date: {report.delivery_date or 'Unknown'}")
    print(f"Documents processed: {report.documents_processed}")
    print()
    print(f"{'Article':<10} {'Name':<40} {'Ordered':>9} {'Delivered':>10} {'Diff':>8}  Status")
    print("-" * 92)
    for item in report.items:
        print(
            f"{item.article_id:<10} {item.name[:40]:<40} {item.ordered:>9g} "
            f"{item.delivered:>10} {item.difference:>+8g}  {STATUS_LABELS[item.status]}"
        )
    print("-" * 92)
    print(
        f"{'TOTAL':<10} {'':<40} {report.total_ordered:>9g} "
        f"{report.total_delivered:>10} {report.net_difference:>+8g}"
    )

    counts = ", ".join(
        f"{STATUS_LABELS[status]}: {count}" for status, count in report.status_counts.items()
    )
    print(f"\n{counts}")

    if report.warnings:
        print(f"\nWARNINGS ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"  - [{warning.kind.value}] {warning.source}: {warning.message}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Audit linen deliveries against an order list")
    parser.add_argument("--order", type=Path, required=True, help="Order list (.xlsx)")
    parser.add_argument("--delivery", type=Path, nargs="+", required=True, help="Delivery documents (PDF)")
    parser.add_argument("--save", action="store_true", help="Save the result as an audit snapshot")
    parser.add_argument("--db", type=Path, help="Snapshot database (default: AUDIT_DB_PATH)")
    parser.add_argument(
        "--output", nargs="?", const="",
        help="Write the report as JSON: a .json file, a directory, or AUDIT_REPORTS_DIR when no value is given",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=args.json_logs or settings.log_json,
        force=True,
    )

    try:
        order_data = args.order.read_bytes()
    except OSError as e:
        print(f"Cannot read order list {args.order}: {e}", file=sys.stderr)
        return 1

    documents, read_warnings = read_documents(args.delivery)

    print("=" * 60)
    print("LINEN DELIVERY AUDIT")
    print("=" * 60)

    try:
        report = run_audit(
            order_data,
            documents,
            order_source=args.order.name,
            warnings=read_warnings,
        )
    except ParsingError as e:
        print(f"\nAudit failed: {e}", file=sys.stderr)
        return 1

    print_report(report)

    if args.save:
        store = SnapshotStore(SqliteRecordStore(args.db or settings.db_path))
        snapshot = store.save_report(report)
        print(f"\nSnapshot saved: {snapshot.id}")
        name = snapshot.id
    else:
        name = (report.delivery_date or "undated").replace("-", "")

    if args.output is not None:
        target = Path(args.output) if args.output else settings.reports_dir
        if target.suffix == ".json":
            ref = write_report(report, target)
        else:
            ref = ReportArchive(target).export(report, name)

        try:
            exported = read_report(ref)
        except ReportIntegrityError as e:
            print(f"Report export could not be verified: {e}", file=sys.stderr)
            return 1
        print(
            f"Report written to {ref.storage_uri} "
            f"({len(exported.items)} articles, sha256 {ref.content_hash[:12]})"
        )

    logger.debug(f"Metrics: {get_metrics().get_summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
