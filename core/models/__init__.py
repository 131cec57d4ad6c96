"""Core data models.

Canonical types for orders, delivery documents and audits, plus the report
and reference models produced by a run.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    ArticleId,
    UNKNOWN_DELIVERY_DATE,
    ALL_PRODUCTS,

    # Orders
    OrderLine,

    # Deliveries
    PositionedToken,
    DeliveryLine,
    DeliveryFacts,

    # Audit
    AuditStatus,
    AuditItem,
    AuditSnapshot,
    AnalyticsWindow,
)

from core.models.refs import (
    DataReference,
    WarningKind,
    ProcessingWarning,
    DeliveryBatch,
    AuditReport,
)

from core.models.analytics import (
    TrendPoint,
    DeviationEntry,
    AnalyticsResult,
)

__all__ = [
    # Base
    "CanonicalBase",
    "ArticleId",
    "UNKNOWN_DELIVERY_DATE",
    "ALL_PRODUCTS",

    # Orders
    "OrderLine",

    # Deliveries
    "PositionedToken",
    "DeliveryLine",
    "DeliveryFacts",

    # Audit
    "AuditStatus",
    "AuditItem",
    "AuditSnapshot",
    "AnalyticsWindow",

    # References and reports
    "DataReference",
    "WarningKind",
    "ProcessingWarning",
    "DeliveryBatch",
    "AuditReport",

    # Analytics
    "TrendPoint",
    "DeviationEntry",
    "AnalyticsResult",
]
