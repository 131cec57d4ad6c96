"""
Metrics Collection for the Linen Audit Engine

Collects and exposes metrics for:
- Audit runs (started, completed, failed)
- Delivery documents (processed, skipped) and extracted facts
- Snapshot store writes (saved, deleted)
- Processing times per stage (average, p95)

Metrics are kept in memory for the lifetime of the process.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class RunMetrics:
    """Metrics for audit runs."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    in_progress: int = 0


@dataclass
class DocumentMetrics:
    """Metrics for delivery document processing."""
    processed: int = 0
    skipped: int = 0
    facts_extracted: int = 0
    lines_rejected: int = 0

    # Skip reasons, keyed by exception type name
    skip_reasons: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class StoreMetrics:
    """Metrics for snapshot store writes."""
    saved: int = 0
    deleted: int = 0


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: Optional[str] = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: Optional[str] = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: Optional[str] = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for the audit engine.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_run_started()
        metrics.record_document_processed(facts=12)
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.runs = RunMetrics()
        self.documents = DocumentMetrics()
        self.store = StoreMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Run Metrics
    # =========================================================================

    def record_run_started(self):
        """Record an audit run start."""
        with self._lock:
            self.runs.started += 1
            self.runs.in_progress += 1

    def record_run_completed(self, duration_ms: Optional[float] = None):
        """Record an audit run completion."""
        with self._lock:
            self.runs.completed += 1
            self.runs.in_progress = max(0, self.runs.in_progress - 1)

            if duration_ms:
                self.timings.add_sample(duration_ms, "run")

    def record_run_failed(self, error: Optional[str] = None):
        """Record an audit run failure."""
        with self._lock:
            self.runs.failed += 1
            self.runs.in_progress = max(0, self.runs.in_progress - 1)

    # =========================================================================
    # Document Metrics
    # =========================================================================

    def record_document_processed(self, facts: int = 0, rejected_lines: int = 0):
        """Record a delivery document that was scanned."""
        with self._lock:
            self.documents.processed += 1
            self.documents.facts_extracted += facts
            self.documents.lines_rejected += rejected_lines

    def record_document_skipped(self, reason: str):
        """Record a delivery document left out of the batch."""
        with self._lock:
            self.documents.skipped += 1
            self.documents.skip_reasons[reason] += 1

    # =========================================================================
    # Store Metrics
    # =========================================================================

    def record_snapshot_saved(self):
        with self._lock:
            self.store.saved += 1

    def record_snapshot_deleted(self):
        with self._lock:
            self.store.deleted += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: Optional[str] = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "runs": {
                    "started": self.runs.started,
                    "completed": self.runs.completed,
                    "failed": self.runs.failed,
                    "in_progress": self.runs.in_progress,
                },
                "documents": {
                    "processed": self.documents.processed,
                    "skipped": self.documents.skipped,
                    "facts_extracted": self.documents.facts_extracted,
                    "lines_rejected": self.documents.lines_rejected,
                    "skip_reasons": dict(self.documents.skip_reasons),
                },
                "store": {
                    "saved": self.store.saved,
                    "deleted": self.store.deleted,
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
