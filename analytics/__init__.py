"""Analytics over saved audit snapshots."""

from analytics.aggregator import (
    build_product_trend,
    build_trend,
    compute_analytics,
    filter_snapshots,
    fulfilment_rate,
    rank_deviations,
)

__all__ = [
    "build_product_trend",
    "build_trend",
    "compute_analytics",
    "filter_snapshots",
    "fulfilment_rate",
    "rank_deviations",
]
