"""
Observability & Audit Layer

RESPONSIBILITY: Record what the transforms skipped, coerced or dropped
ALLOWED INPUTS: Error records and metric points from the transforms
OUTPUTS: AuditLogEntry lists, metric series, audit report

WHAT THIS LAYER MUST NOT DO:
============================
- Modify transform output
- Make decisions based on logged data
- Raise into the caller

BOUNDARY ENFORCEMENT:
=====================
- Collectors are append-only
- Transforms receive a collector optionally; output is identical with or without one
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..contracts.base import Error, ErrorCode


# =============================================================================
# AUDIT ENTRIES
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    SKIPPED = "skipped"         # Record dropped from the batch
    COERCED = "coerced"         # Record kept with a value replaced
    DROPPED = "dropped"         # Derived item (edge, transition) discarded
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    layer: str  # Which component generated this
    action: str
    error_code: Optional[ErrorCode] = None
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


# =============================================================================
# LOG COLLECTOR
# =============================================================================

class LogCollector:
    """
    Per-component log collector.

    Collectors are append-only - no modification of collected data.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)
        self._sequence += 1

    def record(
        self,
        action: str,
        event_type: AuditEventType = AuditEventType.SYSTEM,
        error: Optional[Error] = None,
        entity_id: Optional[str] = None,
        details: str = ""
    ) -> AuditLogEntry:
        """Build and collect an entry."""
        metadata: Tuple[Tuple[str, str], ...] = ()
        if error is not None:
            metadata = (("message", error.message),) + error.context
        if details:
            metadata = metadata + (("details", details),)

        entry = AuditLogEntry(
            entry_id=f"{self._layer_name}_{self._sequence:06d}",
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            layer=self._layer_name,
            action=action,
            error_code=error.code if error else None,
            entity_id=entity_id,
            metadata=metadata
        )
        self.collect(entry)
        return entry

    def skipped(self, action: str, error: Error, entity_id: Optional[str] = None) -> AuditLogEntry:
        return self.record(action, AuditEventType.SKIPPED, error, entity_id)

    def coerced(self, action: str, error: Error, entity_id: Optional[str] = None) -> AuditLogEntry:
        return self.record(action, AuditEventType.COERCED, error, entity_id)

    def dropped(self, action: str, error: Error, entity_id: Optional[str] = None) -> AuditLogEntry:
        return self.record(action, AuditEventType.DROPPED, error, entity_id)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        error_code: Optional[ErrorCode] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if error_code:
            entries = [e for e in entries if e.error_code == error_code]

        return list(entries)

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


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: datetime
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect metrics from the transforms.

    Metrics are append-only time series data points.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="records_in_total",
                metric_type=MetricType.COUNTER,
                description="Records handed to a transform",
                labels=("component",)
            ),
            MetricDefinition(
                name="transform_duration_ms",
                metric_type=MetricType.TIMING,
                description="Transform execution time in milliseconds",
                labels=("component",)
            ),
            MetricDefinition(
                name="flow_graph_nodes",
                metric_type=MetricType.GAUGE,
                description="Nodes surviving top-K pruning"
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
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

        self._metrics[metric_name].append(MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=datetime.now(timezone.utc),
            labels=label_tuple
        ))

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        points = self._metrics.get(metric_name, [])
        return points[-1] if points else None

    def get_definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def get_all_metrics(self) -> Dict[str, List[MetricPoint]]:
        """Get all metrics (copy)."""
        return {k: list(v) for k, v in self._metrics.items()}

    def summary(self) -> Dict[str, Dict]:
        """Per registered metric: its type and aggregates over recorded points."""
        return {
            name: {
                'type': definition.metric_type.value,
                'description': definition.description,
                **self.compute_aggregates(name),
            }
            for name, definition in self._definitions.items()
        }

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        values = [p.value for p in self._metrics.get(metric_name, [])]

        if not values:
            return {}

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True


COMPONENTS: Tuple[str, ...] = (
    'frequency', 'percentages', 'sequence_graph', 'flow_layout', 'triggers', 'mood',
)


class ObservabilityEngine:
    """
    Central Observability Engine.

    Holds one collector per component and the shared metrics collector.
    ONLY observes, never modifies.
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {
            name: LogCollector(name) for name in COMPONENTS
        }
        self._metrics = MetricsCollector() if self._config.enable_metrics else None

    def collector(self, layer_name: str) -> LogCollector:
        if layer_name not in self._collectors:
            self._collectors[layer_name] = LogCollector(layer_name)
        return self._collectors[layer_name]

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        if self._metrics:
            self._metrics.record(metric_name, value, labels)

    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._metrics

    def get_unified_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        """Get unified log from all or specified layers, oldest first."""
        target_layers = layers or list(self._collectors.keys())

        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                all_entries.extend(collector.get_entries())

        all_entries.sort(key=lambda e: e.timestamp)
        return all_entries

    def generate_audit_report(self) -> Dict:
        """Counts of audited events per layer, event type and error code."""
        entries = self.get_unified_log()

        by_layer: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        by_code: Dict[str, int] = {}

        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1
            if entry.error_code is not None:
                by_code[entry.error_code.name] = by_code.get(entry.error_code.name, 0) + 1

        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_event_type': by_type,
            'by_error_code': by_code,
            'metrics': self._metrics.summary() if self._metrics else {},
            'generated_at': datetime.now(timezone.utc).isoformat()
        }
