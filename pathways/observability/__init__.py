"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail and metrics for queries and timeline changes
ALLOWED INPUTS: Copies of results and contract values from other layers
OUTPUTS: AuditLog entries, metric series

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Read the wall clock (entries carry simulated time and a logical sequence)

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable contract values only
- NEVER modifies events or system state
- Collectors are optional; the engine behaves identically without them
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum
import json
import threading

from ..contracts.base import Timestamp, TimeRange


# =============================================================================
# AUDIT LOG
# =============================================================================

class AuditEventType(Enum):
    ENTITY_REGISTERED = "entity_registered"
    RELATIONSHIP_REGISTERED = "relationship_registered"
    ANCHOR_SET = "anchor_set"
    EVENT_RECORDED = "event_recorded"
    QUERY_EXECUTED = "query_executed"
    REGRESSION_APPROXIMATE = "regression_approximate"


@dataclass(frozen=True)
class AuditEntry:
    """
    Immutable audit record.

    sequence is a logical counter local to the collector; at is the
    simulated instant the entry concerns (None when it has none).
    """
    sequence: int
    event_type: AuditEventType
    subject: str
    at: Optional[Timestamp] = None
    details: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def detail(self, key: str) -> Optional[str]:
        for k, v in self.details:
            if k == key:
                return v
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            'sequence': self.sequence,
            'event_type': self.event_type.value,
            'subject': self.subject,
            'at': self.at.to_iso() if self.at else None,
            'details': dict(self.details),
        }


class AuditLog:
    """
    Append-only audit collector.

    Safe to share between threads; entries are never modified once written.
    """

    def __init__(self, name: str = "pathways"):
        self._name = name
        self._entries: List[AuditEntry] = []
        self._lock = threading.Lock()

    def record(
        self,
        event_type: AuditEventType,
        subject: str,
        at: Optional[Timestamp] = None,
        details: Optional[Dict[str, str]] = None,
    ) -> AuditEntry:
        with self._lock:
            entry = AuditEntry(
                sequence=len(self._entries) + 1,
                event_type=event_type,
                subject=subject,
                at=at,
                details=tuple(sorted((details or {}).items())),
            )
            self._entries.append(entry)
        return entry

    def get_entries(
        self,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None,
        subject: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Get entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)

        if time_range:
            entries = [e for e in entries if e.at is not None and time_range.contains(e.at)]
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if subject:
            entries = [e for e in entries if e.subject == subject]
        return entries

    def export_json(self) -> str:
        return json.dumps([e.to_dict() for e in self.get_entries()], sort_keys=True)

    @property
    def name(self) -> str:
        return self._name

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MetricPoint:
    metric_name: str
    value: float
    sequence: int
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect metric series from the engine and the registry.

    Points are ordered by a logical sequence, not wall-clock time.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._sequence = 0
        self._lock = threading.Lock()
        self._register_default_metrics()

    def _register_default_metrics(self):
        """Register standard metrics."""
        defaults = [
            MetricDefinition(
                name="queries_total",
                metric_type=MetricType.COUNTER,
                description="State queries executed",
                labels=("direction",)
            ),
            MetricDefinition(
                name="checkpoints_processed",
                metric_type=MetricType.HISTOGRAM,
                description="Checkpoints stepped through per query"
            ),
            MetricDefinition(
                name="regressions_approximate_total",
                metric_type=MetricType.COUNTER,
                description="Backward regressions flagged approximate"
            ),
            MetricDefinition(
                name="events_recorded_total",
                metric_type=MetricType.COUNTER,
                description="Events added to timelines"
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
        label_tuple = tuple(sorted(labels.items())) if labels else ()
        with self._lock:
            self._sequence += 1
            point = MetricPoint(
                metric_name=metric_name,
                value=value,
                sequence=self._sequence,
                labels=label_tuple,
            )
            self._metrics.setdefault(metric_name, []).append(point)

    def increment(self, metric_name: str, labels: Optional[Dict[str, str]] = None):
        self.record(metric_name, 1.0, labels)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        with self._lock:
            return list(self._metrics.get(metric_name, []))

    def total(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Sum of a series, optionally restricted to points carrying `labels`."""
        wanted = set((labels or {}).items())
        return sum(
            p.value for p in self.get_metric(metric_name)
            if wanted.issubset(set(p.labels))
        )

    def definition(self, metric_name: str) -> Optional[MetricDefinition]:
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


__all__ = [
    'AuditEventType',
    'AuditEntry',
    'AuditLog',
    'MetricType',
    'MetricDefinition',
    'MetricPoint',
    'MetricsCollector',
]
