"""Analytics over historical audit snapshots.

Exposes high-level functions:
- filter_snapshots(window, snapshots) -> List[AuditSnapshot]
- compute_analytics(window, snapshots) -> AnalyticsResult

All figures are computed from the snapshots handed in; nothing is cached
between requests.
"""

from datetime import datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Sequence

from core.models.analytics import AnalyticsResult, DeviationEntry, TrendPoint
from core.models.canonical import AnalyticsWindow, AuditSnapshot
from core.observability.logging import get_logger


logger = get_logger(__name__)

TOP_DEVIATIONS = 5
LABEL_DATE_FORMAT = "%d-%m-%Y"


# =============================================================================
# Filtering
# =============================================================================

def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def filter_snapshots(
    window: AnalyticsWindow,
    snapshots: Iterable[AuditSnapshot],
) -> List[AuditSnapshot]:
    """Keep snapshots created within the window.

    The end date is inclusive up to the end of that day. Snapshots without a
    creation timestamp are always kept.
    """
    lower = datetime.combine(window.start, time.min) if window.start else None
    upper = datetime.combine(window.end, time.max) if window.end else None

    kept = []
    for snapshot in snapshots:
        if snapshot.created_at is None:
            kept.append(snapshot)
            continue
        created = _naive_utc(snapshot.created_at)
        if lower is not None and created < lower:
            continue
        if upper is not None and created > upper:
            continue
        kept.append(snapshot)
    return kept


# =============================================================================
# KPIs
# =============================================================================

def fulfilment_rate(total_ordered: float, total_delivered: float) -> int:
    """Delivered as a whole percentage of ordered, halves rounded up."""
    if total_ordered == 0:
        return 0
    rate = Decimal(str(total_delivered)) * 100 / Decimal(str(total_ordered))
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _chronological(snapshots: Sequence[AuditSnapshot]) -> List[AuditSnapshot]:
    """Ascending by creation time, undated snapshots last in input order."""
    dated = [s for s in snapshots if s.created_at is not None]
    undated = [s for s in snapshots if s.created_at is None]
    dated.sort(key=lambda s: _naive_utc(s.created_at))
    return dated + undated


def _label(snapshot: AuditSnapshot) -> str:
    if snapshot.created_at is not None:
        return snapshot.created_at.strftime(LABEL_DATE_FORMAT)
    return snapshot.delivery_date


# =============================================================================
# Trends
# =============================================================================

def build_trend(snapshots: Sequence[AuditSnapshot]) -> List[TrendPoint]:
    return [
        TrendPoint(
            label=_label(snapshot),
            snapshot_id=snapshot.id,
            delivery_date=snapshot.delivery_date,
            ordered=snapshot.total_ordered,
            delivered=snapshot.total_delivered,
        )
        for snapshot in _chronological(snapshots)
    ]


def build_product_trend(snapshots: Sequence[AuditSnapshot], article_id: str) -> List[TrendPoint]:
    """Trend of one article; snapshots without it contribute 0 / 0."""
    points = []
    for snapshot in _chronological(snapshots):
        item = snapshot.item(article_id)
        points.append(TrendPoint(
            label=_label(snapshot),
            snapshot_id=snapshot.id,
            delivery_date=snapshot.delivery_date,
            ordered=item.ordered if item is not None else 0.0,
            delivered=item.delivered if item is not None else 0,
        ))
    return points


# =============================================================================
# Deviations
# =============================================================================

def rank_deviations(
    snapshots: Iterable[AuditSnapshot],
    limit: int = TOP_DEVIATIONS,
) -> List[DeviationEntry]:
    """Articles with the largest accumulated absolute deviation.

    Ties are ordered by article id. The net signed deviation is split into
    shortfall (net below zero) or surplus (net above zero).
    """
    names: Dict[str, str] = {}
    net: Dict[str, float] = {}
    absolute: Dict[str, float] = {}

    for snapshot in snapshots:
        for item in snapshot.items:
            names.setdefault(item.article_id, item.name)
            net[item.article_id] = net.get(item.article_id, 0.0) + item.difference
            absolute[item.article_id] = absolute.get(item.article_id, 0.0) + abs(item.difference)

    ranked = sorted(absolute, key=lambda article_id: (-absolute[article_id], article_id))

    entries = []
    for article_id in ranked[:limit]:
        balance = net[article_id]
        entries.append(DeviationEntry(
            article_id=article_id,
            name=names[article_id],
            net_difference=balance,
            total_deviation=absolute[article_id],
            shortfall=-balance if balance < 0 else 0.0,
            surplus=balance if balance > 0 else 0.0,
        ))
    return entries


# =============================================================================
# Main Entry Point
# =============================================================================

def compute_analytics(
    window: AnalyticsWindow,
    snapshots: Iterable[AuditSnapshot],
) -> AnalyticsResult:
    """Compute KPIs, trends and deviation ranking for one window.

    Args:
        window: Date range and product filter
        snapshots: Snapshot history, any order

    Returns:
        AnalyticsResult; all-zero with empty lists when the window is empty
    """
    selected = filter_snapshots(window, snapshots)

    total_ordered = sum(s.total_ordered for s in selected)
    total_delivered = sum(s.total_delivered for s in selected)

    product_trend: List[TrendPoint] = []
    if not window.all_products:
        product_trend = build_product_trend(selected, window.product_id)

    result = AnalyticsResult(
        total_audits=len(selected),
        fulfilment_rate=fulfilment_rate(total_ordered, total_delivered),
        net_difference=total_delivered - total_ordered,
        trend=build_trend(selected),
        top_deviations=rank_deviations(selected),
        product_trend=product_trend,
    )
    logger.debug(
        f"Analytics over {result.total_audits} snapshots: {result.fulfilment_rate}% fulfilled",
        extra_fields={"product_id": window.product_id},
    )
    return result
