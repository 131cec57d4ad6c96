"""Extraction pipeline for order lists and delivery documents.

Exposes high-level functions:
- parse_order_file(data) -> Dict[str, OrderLine]   (re-exported from orders)
- extract_document(document, decoder, tolerance) -> (DeliveryFacts, fact lines, noise lines)
- extract_deliveries(documents) -> DeliveryBatch

Delivery documents are processed one after another. A document that fails
is skipped with a warning; the rest of the batch still counts.
"""

import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from core.config import get_settings
from core.errors import DocumentDecodeError
from core.models.canonical import DeliveryFacts
from core.models.refs import DeliveryBatch, ProcessingWarning, WarningKind
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import get_metrics
from extraction.decoders import PageDecoder, PdfTokenDecoder
from extraction.facts import LineOutcome, scan_line
from extraction.lines import reconstruct_document
from extraction.orders import parse_order_file


logger = get_logger(__name__)


@dataclass
class DeliveryDocument:
    """Raw bytes of one delivery document.

    Attributes:
        name: File name, used in warnings and logs
        data: File contents
    """
    name: str
    data: bytes


def read_documents(paths: Iterable[Path]) -> Tuple[List[DeliveryDocument], List[ProcessingWarning]]:
    """Read delivery documents from disk.

    Unreadable files become warnings instead of aborting the batch.
    """
    documents = []
    warnings = []
    for path in paths:
        try:
            documents.append(DeliveryDocument(name=path.name, data=path.read_bytes()))
        except OSError as e:
            logger.warning(f"Cannot read delivery document {path}: {e}")
            warnings.append(ProcessingWarning(
                kind=WarningKind.DOCUMENT_DECODE,
                source=path.name,
                message=f"File could not be read: {e.strerror or e}",
            ))
    return documents, warnings


def extract_document(
    document: DeliveryDocument,
    decoder: PageDecoder,
    tolerance: float,
) -> Tuple[DeliveryFacts, int, int]:
    """Extract facts from one document.

    Returns:
        (facts, lines whose fact was accumulated, noise lines rejected)

    Raises:
        DocumentDecodeError: If the decoder cannot read the document
    """
    tokens = decoder.decode(document.data, source=document.name)
    pages = reconstruct_document(tokens, tolerance)

    facts = DeliveryFacts()
    outcomes: Counter = Counter()
    for page, lines in pages.items():
        with with_correlation(page=page):
            page_outcomes: Counter = Counter()
            for line in lines:
                facts, outcome = scan_line(facts, line)
                page_outcomes[outcome] += 1
            logger.debug(
                f"Scanned {len(lines)} lines",
                extra_fields={outcome.value: count for outcome, count in page_outcomes.items()},
            )
            outcomes.update(page_outcomes)

    return facts, outcomes[LineOutcome.ACCEPTED], outcomes[LineOutcome.NOISE]


def extract_deliveries(
    documents: Sequence[DeliveryDocument],
    decoder: Optional[PageDecoder] = None,
    tolerance: Optional[float] = None,
) -> DeliveryBatch:
    """Accumulate delivery facts over all documents.

    Quantities of the same article are added across lines, pages and
    documents. The delivery date comes from the first document that has one.

    Args:
        documents: Delivery documents in processing order
        decoder: Page decoder, PDF by default
        tolerance: Line grouping tolerance, from settings by default

    Returns:
        DeliveryBatch with facts and one warning per skipped document
    """
    decoder = decoder or PdfTokenDecoder()
    if tolerance is None:
        tolerance = get_settings().line_y_tolerance
    metrics = get_metrics()

    facts = DeliveryFacts()
    warnings: List[ProcessingWarning] = []
    processed = 0

    for document in documents:
        with with_correlation(stage="deliveries", document=document.name):
            start = time.time()
            try:
                doc_facts, fact_lines, noise_lines = extract_document(document, decoder, tolerance)
            except DocumentDecodeError as e:
                reason = e.reason
                error_type = type(e.__cause__ or e).__name__
                logger.warning(f"Skipping delivery document: {reason}")
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                error_type = type(e).__name__
                logger.exception(f"Skipping delivery document after unexpected error: {reason}")
            else:
                facts = facts.merge(doc_facts)
                processed += 1
                metrics.record_document_processed(facts=fact_lines, rejected_lines=noise_lines)
                metrics.record_processing_time("deliveries.document", (time.time() - start) * 1000)
                logger.info(
                    f"Extracted {len(doc_facts.quantities)} articles from delivery document",
                    extra_fields={"articles": len(doc_facts.quantities), "delivery_date": doc_facts.delivery_date},
                )
                continue

            metrics.record_document_skipped(error_type)
            warnings.append(ProcessingWarning(
                kind=WarningKind.DOCUMENT_DECODE,
                source=document.name,
                message=reason,
            ))

    return DeliveryBatch(
        facts=facts,
        warnings=warnings,
        documents_processed=processed,
        documents_skipped=len(warnings),
    )


__all__ = [
    "DeliveryDocument",
    "read_documents",
    "extract_document",
    "extract_deliveries",
    "parse_order_file",
]
