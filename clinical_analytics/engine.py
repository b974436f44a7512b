"""
Engine Orchestration Module

Unified interface over the analytics transforms.

DESIGN PRINCIPLES:
==================
1. Transforms stay pure; the engine only wires config and audit collectors
2. A dataset that has not arrived yet (None) is MISSING, not an error
3. Each panel is computed independently - partial data is fine
4. Output is a function of input only; audit history never feeds back
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Tuple
import time

from .contracts.base import AvailabilityState
from .contracts.views import (
    AggregatedCategory, FlowGraph, FlowLayout, MoodPoint,
    NormalizedResponseRow, TriggerCount,
)
from .core.frequency import FrequencyConfig, aggregate_categories
from .core.mood import build_mood_series
from .core.percentages import ResponseConfig, normalize_responses
from .core.sequence_graph import SequenceGraphConfig, build_sequence_graph
from .core.triggers import TriggerConfig, rank_triggers
from .observability import ObservabilityConfig, ObservabilityEngine
from .visualization.flow_layout import FlowLayoutConfig, compute_flow_layout


@dataclass
class AnalyticsConfig:
    """Unified configuration for every transform."""
    frequency: FrequencyConfig = None
    responses: ResponseConfig = None
    sequence_graph: SequenceGraphConfig = None
    flow_layout: FlowLayoutConfig = None
    triggers: TriggerConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.frequency = self.frequency or FrequencyConfig()
        self.responses = self.responses or ResponseConfig()
        self.sequence_graph = self.sequence_graph or SequenceGraphConfig()
        self.flow_layout = self.flow_layout or FlowLayoutConfig()
        self.triggers = self.triggers or TriggerConfig()
        self.observability = self.observability or ObservabilityConfig()


@dataclass(frozen=True)
class DashboardInputs:
    """
    Raw datasets for one subject, as fetched.
    None means the fetch has not resolved yet.
    """
    distortions: Any = None
    relapse_responses: Any = None
    relapse_sequences: Any = None
    triggers: Any = None
    mood: Any = None


@dataclass(frozen=True)
class Panel:
    """A computed chart input plus whether its dataset had arrived."""
    availability: AvailabilityState
    data: Any

    @property
    def is_empty(self) -> bool:
        if isinstance(self.data, (FlowGraph, FlowLayout)):
            return not self.data.nodes
        return not self.data


@dataclass(frozen=True)
class DashboardAnalytics:
    distortions: Panel
    relapse_responses: Panel
    relapse_flow_graph: Panel
    relapse_flow_layout: Panel
    triggers: Panel
    mood: Panel


def _availability(dataset: Any) -> AvailabilityState:
    return AvailabilityState.MISSING if dataset is None else AvailabilityState.PRESENT


class AnalyticsEngine:
    """
    Facade for the analytics transforms.

    FLOW:
    =====
    distortions        -> aggregate_categories   -> frequency chart
    relapse responses  -> normalize_responses    -> 100%-stacked chart
    relapse sequences  -> build_sequence_graph   -> compute_flow_layout -> flow diagram
    trigger pivot      -> rank_triggers          -> trigger chart
    mood arrays        -> build_mood_series      -> mood line chart
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self._config = config or AnalyticsConfig()
        self._observability = ObservabilityEngine(self._config.observability)

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    def _timed(self, component: str, dataset: Any, fn, *args):
        start_time = time.time()
        result = fn(*args)
        elapsed_ms = (time.time() - start_time) * 1000

        labels = {'component': component}
        self._observability.collect_metric('transform_duration_ms', elapsed_ms, labels)
        if isinstance(dataset, (list, tuple)):
            self._observability.collect_metric('records_in_total', float(len(dataset)), labels)
        return result

    # =========================================================================
    # INDIVIDUAL TRANSFORMS
    # =========================================================================

    def aggregate_distortions(self, records: Any) -> Tuple[AggregatedCategory, ...]:
        return self._timed(
            'frequency', records, aggregate_categories,
            records, self._config.frequency, self._observability.collector('frequency')
        )

    def normalize_responses(self, tallies: Any) -> Tuple[NormalizedResponseRow, ...]:
        return self._timed(
            'percentages', tallies, normalize_responses,
            tallies, self._config.responses, self._observability.collector('percentages')
        )

    def build_flow_graph(self, sequences: Any) -> FlowGraph:
        graph = self._timed(
            'sequence_graph', sequences, build_sequence_graph,
            sequences, self._config.sequence_graph,
            self._observability.collector('sequence_graph')
        )
        self._observability.collect_metric('flow_graph_nodes', float(len(graph.nodes)))
        return graph

    def layout_flow(self, graph: Optional[FlowGraph]) -> FlowLayout:
        return self._timed(
            'flow_layout', None, compute_flow_layout,
            graph, self._config.flow_layout, self._observability.collector('flow_layout')
        )

    def rank_triggers(self, tally: Any) -> Tuple[TriggerCount, ...]:
        return self._timed(
            'triggers', None, rank_triggers,
            tally, self._config.triggers, self._observability.collector('triggers')
        )

    def build_mood_series(self, series: Any) -> Tuple[MoodPoint, ...]:
        return self._timed(
            'mood', None, build_mood_series,
            series, self._observability.collector('mood')
        )

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def summarize(self, inputs: Optional[DashboardInputs] = None) -> DashboardAnalytics:
        """Compute every panel from whatever datasets have arrived."""
        inputs = inputs or DashboardInputs()

        graph = self.build_flow_graph(inputs.relapse_sequences)
        sequence_availability = _availability(inputs.relapse_sequences)

        return DashboardAnalytics(
            distortions=Panel(
                availability=_availability(inputs.distortions),
                data=self.aggregate_distortions(inputs.distortions)
            ),
            relapse_responses=Panel(
                availability=_availability(inputs.relapse_responses),
                data=self.normalize_responses(inputs.relapse_responses)
            ),
            relapse_flow_graph=Panel(availability=sequence_availability, data=graph),
            relapse_flow_layout=Panel(
                availability=sequence_availability,
                data=self.layout_flow(graph)
            ),
            triggers=Panel(
                availability=_availability(inputs.triggers),
                data=self.rank_triggers(inputs.triggers)
            ),
            mood=Panel(
                availability=_availability(inputs.mood),
                data=self.build_mood_series(inputs.mood)
            ),
        )
