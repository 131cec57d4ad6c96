"""Extraction package - order lists and delivery documents.

Order workbooks become order lines; delivery PDFs become positioned tokens,
reconstructed lines and finally delivered quantities per article.
"""

from extraction.decoders import PdfTokenDecoder, XlsxTableDecoder
from extraction.facts import (
    EXTRACTION_STRATEGIES,
    LineOutcome,
    accumulate_line,
    extract_fact,
    extract_page_facts,
    positional_strategy,
    scan_line,
    textual_strategy,
)
from extraction.lines import normalize_text, reconstruct_document, reconstruct_lines
from extraction.orders import coerce_quantity, parse_order_file, parse_order_rows
from extraction.runner import DeliveryDocument, extract_deliveries, read_documents

__all__ = [
    "PdfTokenDecoder",
    "XlsxTableDecoder",
    "EXTRACTION_STRATEGIES",
    "LineOutcome",
    "accumulate_line",
    "extract_fact",
    "extract_page_facts",
    "positional_strategy",
    "scan_line",
    "textual_strategy",
    "normalize_text",
    "reconstruct_document",
    "reconstruct_lines",
    "coerce_quantity",
    "parse_order_file",
    "parse_order_rows",
    "DeliveryDocument",
    "extract_deliveries",
    "read_documents",
]
