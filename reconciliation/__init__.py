"""Reconciliation package - orders versus deliveries."""

from reconciliation.engine import merge_audit_items, reconcile, run_audit
from reconciliation.rules import (
    ARTICLE_NAME_OVERRIDES,
    EXCLUDED_NAME_KEYWORDS,
    UNKNOWN_ARTICLE_NAME,
    display_name,
    is_excluded,
)

__all__ = [
    "merge_audit_items",
    "reconcile",
    "run_audit",
    "ARTICLE_NAME_OVERRIDES",
    "EXCLUDED_NAME_KEYWORDS",
    "UNKNOWN_ARTICLE_NAME",
    "display_name",
    "is_excluded",
]
