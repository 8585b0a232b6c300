"""
Observability & Audit Layer

RESPONSIBILITY: Audit logging and metrics for layout analysis and caching
ALLOWED INPUTS: Layout results, diagnostics, cache lookups
OUTPUTS: AuditLogEntry, MetricPoint, summary reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify layout results
- Filter or reinterpret diagnostics (only record them)
- Influence lane assignment in any way

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable values only
- Collectors are append-only
- Provides read-only access to logs and metrics
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from enum import Enum
import hashlib

from ..contracts.base import Error
from ..contracts.events import (
    AuditLogEntry, AuditEventType, MetricPoint, LayoutResult
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# LOG COLLECTOR
# =============================================================================

class LogCollector:
    """
    Append-only collector of audit entries for one layer.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)
        self._sequence += 1

    def log(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None
    ) -> AuditLogEntry:
        """Build and collect an entry with a sequence-derived id."""
        timestamp = _now()
        entry_id = hashlib.sha256(
            f"{self._layer_name}|{self._sequence}|{action}|{timestamp.isoformat()}".encode()
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=event_type,
            timestamp=timestamp,
            layer=self._layer_name,
            action=action,
            entity_id=entity_id,
            metadata=tuple(sorted(metadata.items())) if metadata else ()
        )
        self.collect(entry)
        return entry

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered by type."""
        if event_type:
            return [e for e in self._entries if e.event_type == event_type]
        return list(self._entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMING = "timing"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect metrics as append-only time series.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="layout_events_total",
                metric_type=MetricType.COUNTER,
                description="Events submitted for layout analysis"
            ),
            MetricDefinition(
                name="layout_lane_count",
                metric_type=MetricType.GAUGE,
                description="Lanes produced by the latest analysis"
            ),
            MetricDefinition(
                name="layout_branch_points_total",
                metric_type=MetricType.COUNTER,
                description="Branch points recorded",
                labels=("kind",)
            ),
            MetricDefinition(
                name="layout_analysis_duration_ms",
                metric_type=MetricType.TIMING,
                description="Layout analysis time in milliseconds"
            ),
            MetricDefinition(
                name="layout_diagnostics_total",
                metric_type=MetricType.COUNTER,
                description="Diagnostics raised during analysis",
                labels=("code",)
            ),
            MetricDefinition(
                name="layout_cache_hits_total",
                metric_type=MetricType.COUNTER,
                description="Layout cache hits"
            ),
            MetricDefinition(
                name="layout_cache_misses_total",
                metric_type=MetricType.COUNTER,
                description="Layout cache misses"
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        """Register a new metric definition."""
        self._definitions[definition.name] = definition
        if definition.name not in self._metrics:
            self._metrics[definition.name] = []

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        if metric_name not in self._metrics:
            self._metrics[metric_name] = []

        label_tuple = tuple(sorted(labels.items())) if labels else ()

        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=_now(),
            labels=label_tuple
        )
        self._metrics[metric_name].append(point)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        """Get the latest value for a metric."""
        points = self._metrics.get(metric_name, [])
        return points[-1] if points else None

    def get_definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        points = self.get_metric(metric_name)

        if not points:
            return {}

        values = [p.value for p in points]

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# LAYOUT OBSERVER
# =============================================================================

class LayoutObserver:
    """
    Side channel for the layout engine and its cache.

    The engine reports to an observer when one is supplied; results are
    identical with or without it.
    """

    def __init__(self):
        self._log = LogCollector("layout")
        self._metrics = MetricsCollector()

    @property
    def log(self) -> LogCollector:
        return self._log

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def analysis_started(self, event_count: int):
        self._log.log(
            AuditEventType.ANALYSIS, "analysis_started",
            metadata={"event_count": str(event_count)}
        )
        self._metrics.record("layout_events_total", float(event_count))

    def analysis_completed(self, result: LayoutResult, duration_ms: float):
        self._log.log(
            AuditEventType.ANALYSIS, "analysis_completed",
            metadata={
                "lane_count": str(result.lane_count),
                "branch_points": str(len(result.branch_points)),
                "diagnostics": str(len(result.diagnostics)),
            }
        )
        self._metrics.record("layout_lane_count", float(result.lane_count))
        self._metrics.record("layout_analysis_duration_ms", duration_ms)
        for bp in result.branch_points:
            self._metrics.record(
                "layout_branch_points_total", 1.0, {"kind": bp.kind.value}
            )

    def diagnostic(self, error: Error):
        self._log.log(
            AuditEventType.DIAGNOSTIC, error.code.name.lower(),
            entity_id=error.context_value("event_id"),
            metadata=dict(error.context)
        )
        self._metrics.record(
            "layout_diagnostics_total", 1.0, {"code": error.code.name}
        )

    def cache_lookup(self, key: str, hit: bool):
        self._log.log(
            AuditEventType.CACHE, "cache_hit" if hit else "cache_miss",
            entity_id=key
        )
        name = "layout_cache_hits_total" if hit else "layout_cache_misses_total"
        self._metrics.record(name, 1.0)

    def get_report(self) -> Dict[str, object]:
        """Summary of everything observed so far."""
        by_type: Dict[str, int] = {}
        for entry in self._log.get_entries():
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        return {
            'total_entries': self._log.entry_count,
            'entries_by_type': by_type,
            'analyses': sum(
                1 for e in self._log.get_entries(AuditEventType.ANALYSIS)
                if e.action == "analysis_completed"
            ),
            'diagnostics': len(self._log.get_entries(AuditEventType.DIAGNOSTIC)),
            'analysis_duration_ms': self._metrics.compute_aggregates(
                "layout_analysis_duration_ms"
            ),
        }


__all__ = [
    'LogCollector', 'MetricType', 'MetricDefinition', 'MetricsCollector',
    'LayoutObserver',
]
