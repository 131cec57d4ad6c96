"""Report and reference models: artifacts, warnings, batch and audit reports."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.models.canonical import AuditItem, AuditStatus, DeliveryFacts


class DataReference(BaseModel):
    """Reference to a stored artifact with metadata for retrieval and verification.

    Attributes:
        storage_uri: Absolute file path to the artifact
        content_hash: SHA256 hash of the content for integrity verification
        content_type: MIME type (e.g., "application/json")
        size_bytes: Size of the artifact in bytes
        stored_at: Timestamp when the artifact was stored
    """
    storage_uri: str = Field(..., description="Absolute file path to the artifact")
    content_hash: str = Field(..., description="SHA256 hash of content")
    content_type: str = Field(default="application/json", description="MIME type")
    size_bytes: int = Field(..., description="Size in bytes")
    stored_at: datetime = Field(default_factory=datetime.utcnow, description="Storage timestamp")


# =============================================================================
# Warnings
# =============================================================================

class WarningKind(str, Enum):
    """Non-fatal problems recorded during a run."""
    COERCION = "COERCION"
    DOCUMENT_DECODE = "DOCUMENT_DECODE"


class ProcessingWarning(BaseModel):
    """A recoverable problem, reported next to the partial result."""
    kind: WarningKind = Field(..., description="Warning category")
    source: str = Field(..., description="File name or row reference")
    message: str = Field(..., description="Human-readable reason")


# =============================================================================
# Run Results
# =============================================================================

class DeliveryBatch(BaseModel):
    """Facts accumulated over all delivery documents of one run.

    Attributes:
        facts: Delivered quantities per article and detected date
        warnings: One entry per skipped document
        documents_processed: Documents that decoded and were scanned
        documents_skipped: Documents that failed and were left out
    """
    facts: DeliveryFacts = Field(default_factory=DeliveryFacts)
    warnings: List[ProcessingWarning] = Field(default_factory=list)
    documents_processed: int = 0
    documents_skipped: int = 0

    @property
    def skipped_sources(self) -> List[str]:
        return [w.source for w in self.warnings if w.kind == WarningKind.DOCUMENT_DECODE]


class AuditReport(BaseModel):
    """Result of one reconciliation run, before it is saved as a snapshot.

    Attributes:
        items: Per-article results sorted by article id
        delivery_date: Date found on the delivery documents, if any
        total_ordered: Sum of ordered quantities over items
        total_delivered: Sum of delivered quantities over items
        net_difference: total_delivered - total_ordered
        status_counts: Number of items per status
        warnings: Coercion and skipped-document warnings
        documents_processed: Delivery documents that contributed facts
    """
    items: List[AuditItem] = Field(default_factory=list)
    delivery_date: Optional[str] = None
    total_ordered: float = 0.0
    total_delivered: int = 0
    net_difference: float = 0.0
    status_counts: Dict[AuditStatus, int] = Field(default_factory=dict)
    warnings: List[ProcessingWarning] = Field(default_factory=list)
    documents_processed: int = 0

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
