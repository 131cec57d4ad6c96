"""Core canonical data models for the linen audit engine.

These models describe the order list, the positioned text of delivery
documents, the per-article audit result and the persisted snapshots.
Decoders in /extraction/ produce them; /reconciliation/ and /analytics/
consume them.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


UNKNOWN_DELIVERY_DATE = "Unknown"
ALL_PRODUCTS = "All"


# =============================================================================
# Value Parsers
# =============================================================================

def _parse_article_id(value):
    """Article ids arrive as strings or as numbers from spreadsheet cells."""
    if value is None:
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


ArticleId = Annotated[str, BeforeValidator(_parse_article_id), Field(pattern=r"^\d+$")]


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Order List
# =============================================================================

class OrderLine(CanonicalBase):
    """One article on the order list (quantities of repeated rows summed)."""
    article_id: ArticleId
    name: str
    ordered_qty: float = Field(default=0.0, ge=0)


# =============================================================================
# Delivery Documents
# =============================================================================

class PositionedToken(CanonicalBase):
    """A text fragment with its baseline position on a page.

    ``y`` grows upwards: a larger value means higher on the page.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    page: int = 1


class DeliveryLine(CanonicalBase):
    """A reconstructed line of text, tokens ordered left to right."""
    y: float
    tokens: List[Tuple[float, str]] = Field(default_factory=list)

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.tokens]

    @property
    def text(self) -> str:
        return " ".join(self.texts)


class DeliveryFacts(CanonicalBase):
    """Delivered quantities per article plus the detected delivery date.

    Used as a value: the ``with_*`` methods return a new instance and leave
    the receiver untouched.
    """
    model_config = ConfigDict(frozen=True)

    quantities: Dict[str, int] = Field(default_factory=dict)
    delivery_date: Optional[str] = None

    def with_quantity(self, article_id: str, qty: int) -> "DeliveryFacts":
        quantities = dict(self.quantities)
        quantities[article_id] = quantities.get(article_id, 0) + qty
        return self.model_copy(update={"quantities": quantities})

    def with_date(self, delivery_date: str) -> "DeliveryFacts":
        # First detected date wins
        if self.delivery_date is not None:
            return self
        return self.model_copy(update={"delivery_date": delivery_date})

    def merge(self, other: "DeliveryFacts") -> "DeliveryFacts":
        """Add another accumulator's quantities; keep our date if we have one."""
        merged = self
        for article_id, qty in other.quantities.items():
            merged = merged.with_quantity(article_id, qty)
        if other.delivery_date is not None:
            merged = merged.with_date(other.delivery_date)
        return merged

    @property
    def total(self) -> int:
        return sum(self.quantities.values())


# =============================================================================
# Audit Result
# =============================================================================

class AuditStatus(str, Enum):
    SHORTFALL = "Shortfall"
    SURPLUS = "Surplus"
    CORRECT = "Correct"


class AuditItem(CanonicalBase):
    """Ordered versus delivered quantity for one article."""
    article_id: ArticleId
    name: str
    ordered: float = 0.0
    delivered: int = 0

    @computed_field
    @property
    def difference(self) -> float:
        return self.delivered - self.ordered

    @computed_field
    @property
    def status(self) -> AuditStatus:
        if self.difference < 0:
            return AuditStatus.SHORTFALL
        if self.difference > 0:
            return AuditStatus.SURPLUS
        return AuditStatus.CORRECT


class AuditSnapshot(CanonicalBase):
    """A persisted, immutable audit result.

    ``id`` and ``created_at`` are assigned by the snapshot store on append.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    created_at: Optional[datetime] = None
    delivery_date: str = UNKNOWN_DELIVERY_DATE
    items: List[AuditItem] = Field(default_factory=list)
    total_ordered: float = 0.0
    total_delivered: int = 0

    def item(self, article_id: str) -> Optional[AuditItem]:
        for entry in self.items:
            if entry.article_id == article_id:
                return entry
        return None


# =============================================================================
# Analytics Window
# =============================================================================

class AnalyticsWindow(CanonicalBase):
    """Date range and product filter for one analytics request."""
    start: Optional[date] = None
    end: Optional[date] = None
    product_id: str = ALL_PRODUCTS

    @property
    def all_products(self) -> bool:
        return self.product_id == ALL_PRODUCTS
