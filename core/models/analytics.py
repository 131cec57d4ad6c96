"""Analytics response models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TrendPoint(BaseModel):
    """Ordered and delivered totals of one snapshot."""
    label: str = Field(..., description="Creation date (dd-mm-yyyy) or delivery date")
    snapshot_id: str = Field(..., description="Snapshot the point was taken from")
    delivery_date: Optional[str] = Field(None, description="Delivery date of the snapshot")
    ordered: float = Field(default=0.0, description="Ordered quantity")
    delivered: int = Field(default=0, description="Delivered quantity")


class DeviationEntry(BaseModel):
    """Accumulated deviation of one article across the window.

    The net signed sum lands in exactly one of ``shortfall`` and ``surplus``.
    """
    article_id: str
    name: str
    net_difference: float = Field(default=0.0, description="Sum of delivered - ordered")
    total_deviation: float = Field(default=0.0, description="Sum of |delivered - ordered|")
    shortfall: float = Field(default=0.0, description="|net| when net is negative")
    surplus: float = Field(default=0.0, description="net when net is positive")


class AnalyticsResult(BaseModel):
    """KPIs, trends and deviation ranking for one analytics window."""
    total_audits: int = 0
    fulfilment_rate: int = Field(default=0, description="Percentage delivered of ordered, 0 when nothing ordered")
    net_difference: float = 0.0
    trend: List[TrendPoint] = Field(default_factory=list)
    top_deviations: List[DeviationEntry] = Field(default_factory=list)
    product_trend: List[TrendPoint] = Field(default_factory=list)
