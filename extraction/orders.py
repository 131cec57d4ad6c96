"""Order list parsing.

Turns decoded spreadsheet rows into order lines keyed by article id:
- column 0: article id (digits only)
- column 1: article name
- column 9: ordered quantity

Rows for the same article are summed, so an order can spread one article
over several lines.
"""

import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.errors import ParsingError
from core.models.canonical import OrderLine
from core.models.refs import ProcessingWarning, WarningKind
from core.observability.logging import get_logger, with_correlation
from extraction.decoders import TabularDecoder, XlsxTableDecoder
from extraction.rules import (
    ORDER_ID_COLUMN,
    ORDER_ID_PATTERN,
    ORDER_NAME_COLUMN,
    ORDER_QTY_COLUMN,
)


logger = get_logger(__name__)


# =============================================================================
# Cell Helpers
# =============================================================================

def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _cell_text(value: Any) -> str:
    """Cell value as trimmed text; whole-number floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def coerce_quantity(value: Any) -> Tuple[float, bool]:
    """Coerce a quantity cell to a non-negative number.

    Numbers are used as-is; strings may use a decimal comma ("12,5").
    Blank cells count as 0.

    Returns:
        (quantity, ok) where ok is False when the cell had a value that could
        not be used and was replaced by 0
    """
    if value is None:
        return 0.0, True

    if isinstance(value, bool):
        return 0.0, False

    if isinstance(value, (int, float, Decimal)):
        qty = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0.0, True
        try:
            qty = float(text.replace(",", "."))
        except ValueError:
            return 0.0, False
    else:
        return 0.0, False

    if not math.isfinite(qty) or qty < 0:
        return 0.0, False
    return qty, True


# =============================================================================
# Parsing
# =============================================================================

def parse_order_rows(
    rows: Sequence[Sequence[Any]],
    warnings: Optional[List[ProcessingWarning]] = None,
) -> Dict[str, OrderLine]:
    """Build the order map from decoded rows.

    A header row is not required; it is skipped like any other row whose
    first cell is not an article id.

    Args:
        rows: Rows of cell values, first sheet only
        warnings: Optional list that receives coercion warnings

    Returns:
        Order lines keyed by article id, in first-seen order

    Raises:
        ParsingError: If no row yields an order line
    """
    orders: Dict[str, OrderLine] = {}

    for index, row in enumerate(rows):
        if not row:
            continue

        article_id = _cell_text(_cell(row, ORDER_ID_COLUMN))
        if not article_id or not ORDER_ID_PATTERN.match(article_id):
            continue

        name = _cell_text(_cell(row, ORDER_NAME_COLUMN))
        if not name:
            continue

        raw_qty = _cell(row, ORDER_QTY_COLUMN)
        qty, ok = coerce_quantity(raw_qty)
        if not ok:
            warning = ProcessingWarning(
                kind=WarningKind.COERCION,
                source=f"row {index + 1}",
                message=f"Quantity {raw_qty!r} for article {article_id} counted as 0",
            )
            logger.warning(warning.message, extra_fields={"row": index + 1})
            if warnings is not None:
                warnings.append(warning)

        existing = orders.get(article_id)
        if existing is None:
            orders[article_id] = OrderLine(article_id=article_id, name=name, ordered_qty=qty)
        else:
            orders[article_id] = existing.model_copy(
                update={"ordered_qty": existing.ordered_qty + qty}
            )

    if not orders:
        raise ParsingError("no valid order rows found")

    return orders


def parse_order_file(
    data: bytes,
    decoder: Optional[TabularDecoder] = None,
    source: str = "order list",
    warnings: Optional[List[ProcessingWarning]] = None,
) -> Dict[str, OrderLine]:
    """Decode an order workbook and parse it.

    Raises:
        ParsingError: If the file cannot be decoded or has no valid rows
    """
    decoder = decoder or XlsxTableDecoder()

    with with_correlation(stage="orders", document=source):
        try:
            rows = decoder.decode(data)
        except Exception as e:
            logger.error(f"Order list could not be read: {e}")
            raise ParsingError(f"order list {source} could not be read: {e}") from e

        orders = parse_order_rows(rows, warnings=warnings)
        logger.info(
            f"Parsed {len(orders)} ordered articles from {len(rows)} rows",
            extra_fields={"articles": len(orders)},
        )
        return orders
