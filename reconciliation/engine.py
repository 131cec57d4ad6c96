"""Reconciliation engine for linen orders and deliveries.

Exposes high-level functions:
- merge_audit_items(orders, delivered) -> List[AuditItem]
- reconcile(orders, batch) -> AuditReport
- run_audit(order_data, documents) -> AuditReport
"""

import time
import uuid
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence

from core.models.canonical import AuditItem, AuditStatus, OrderLine
from core.models.refs import AuditReport, DeliveryBatch, ProcessingWarning
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import get_metrics
from extraction.decoders import PageDecoder, TabularDecoder
from extraction.orders import parse_order_file
from extraction.runner import DeliveryDocument, extract_deliveries
from reconciliation.rules import UNKNOWN_ARTICLE_NAME, display_name, is_excluded


logger = get_logger(__name__)


# =============================================================================
# Merge
# =============================================================================

def merge_audit_items(
    orders: Mapping[str, OrderLine],
    delivered: Mapping[str, int],
) -> List[AuditItem]:
    """Pair ordered and delivered quantities per article.

    - Every ordered article gets its delivered quantity (0 when absent).
    - Articles delivered but never ordered are added with ordered = 0.
    - Name overrides apply to both; excluded categories are dropped from both.

    Neither input is modified.

    Returns:
        One item per surviving article id, sorted by id as text
    """
    remaining: Dict[str, int] = dict(delivered)
    items: List[AuditItem] = []

    for article_id, order in orders.items():
        qty = remaining.pop(article_id, 0)
        name = display_name(article_id, order.name)
        if is_excluded(name):
            logger.debug(f"Excluded ordered article {article_id} ({name})")
            continue
        items.append(AuditItem(
            article_id=article_id,
            name=name,
            ordered=order.ordered_qty,
            delivered=qty,
        ))

    for article_id, qty in remaining.items():
        name = display_name(article_id, UNKNOWN_ARTICLE_NAME)
        if is_excluded(name):
            logger.debug(f"Excluded unordered article {article_id} ({name})")
            continue
        items.append(AuditItem(
            article_id=article_id,
            name=name,
            ordered=0,
            delivered=qty,
        ))

    items.sort(key=lambda item: item.article_id)
    return items


# =============================================================================
# Report
# =============================================================================

def reconcile(
    orders: Mapping[str, OrderLine],
    batch: DeliveryBatch,
    warnings: Optional[Sequence[ProcessingWarning]] = None,
) -> AuditReport:
    """Merge orders with accumulated deliveries and summarize the result.

    Args:
        orders: Order lines keyed by article id
        batch: Delivery facts of all documents
        warnings: Warnings raised before extraction (order coercions, unreadable files)

    Returns:
        AuditReport with items, totals and every warning of the run
    """
    items = merge_audit_items(orders, batch.facts.quantities)

    total_ordered = sum(item.ordered for item in items)
    total_delivered = sum(item.delivered for item in items)
    counts = Counter(item.status for item in items)

    return AuditReport(
        items=items,
        delivery_date=batch.facts.delivery_date,
        total_ordered=total_ordered,
        total_delivered=total_delivered,
        net_difference=total_delivered - total_ordered,
        status_counts={status: counts.get(status, 0) for status in AuditStatus},
        warnings=list(warnings or []) + list(batch.warnings),
        documents_processed=batch.documents_processed,
    )


def run_audit(
    order_data: bytes,
    documents: Sequence[DeliveryDocument],
    order_decoder: Optional[TabularDecoder] = None,
    page_decoder: Optional[PageDecoder] = None,
    tolerance: Optional[float] = None,
    order_source: str = "order list",
    warnings: Optional[Sequence[ProcessingWarning]] = None,
) -> AuditReport:
    """Run a full audit: parse the order list, read deliveries, reconcile.

    Args:
        order_data: Order workbook bytes
        documents: Delivery documents
        order_decoder: Tabular decoder, .xlsx by default
        page_decoder: Page decoder, PDF by default
        tolerance: Line grouping tolerance, from settings by default
        order_source: Name of the order file for messages
        warnings: Warnings collected by the caller (e.g. unreadable files)

    Returns:
        AuditReport; skipped delivery documents are listed in its warnings

    Raises:
        ParsingError: If the order list yields no valid rows
    """
    run_id = uuid.uuid4().hex
    metrics = get_metrics()
    metrics.record_run_started()
    start = time.time()

    with with_correlation(audit_run_id=run_id):
        run_warnings: List[ProcessingWarning] = list(warnings or [])
        try:
            orders = parse_order_file(
                order_data,
                decoder=order_decoder,
                source=order_source,
                warnings=run_warnings,
            )
        except Exception as e:
            metrics.record_run_failed(str(e))
            raise

        batch = extract_deliveries(documents, decoder=page_decoder, tolerance=tolerance)

        with with_correlation(stage="merge"):
            report = reconcile(orders, batch, warnings=run_warnings)
            duration_ms = (time.time() - start) * 1000
            metrics.record_run_completed(duration_ms)
            logger.info(
                f"Audit complete: {len(report.items)} articles, "
                f"ordered {report.total_ordered:g}, delivered {report.total_delivered}, "
                f"{len(report.warnings)} warnings",
                extra_fields={
                    "duration_ms": round(duration_ms, 1),
                    "documents_processed": batch.documents_processed,
                    "documents_skipped": batch.documents_skipped,
                },
            )

    return report
