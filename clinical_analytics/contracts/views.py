"""
Derived View Contracts

Render-ready structures produced by the transforms.

PRINCIPLES:
1. Immutable (Frozen), tuples only
2. Recomputed from scratch on every call
3. No rendering logic - coordinates are data, painting happens elsewhere
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Tuple

import networkx as nx

from .base import Stage
from .records import RESPONSE_LABELS


# =============================================================================
# FREQUENCY
# =============================================================================

@dataclass(frozen=True)
class AggregatedCategory:
    """One bar of the frequency chart."""
    category: str           # Display label (possibly truncated)
    full_category: str
    count: int
    latest_excerpt: str
    color_index: int


# =============================================================================
# PERCENTAGES
# =============================================================================

@dataclass(frozen=True)
class NormalizedResponseRow:
    """
    One 100%-stacked bar.

    Percentages follow RESPONSE_CHANNELS order and sum to exactly 100,
    or are all 0 for a category whose raw total is 0.
    """
    category: str
    percentages: Tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.percentages)

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(RESPONSE_LABELS, self.percentages))

    def top_responses(self, n: int = 2) -> Tuple[Tuple[str, int], ...]:
        """Leading responses by percentage; ties keep channel order."""
        ranked = sorted(
            zip(RESPONSE_LABELS, self.percentages),
            key=lambda item: item[1],
            reverse=True
        )
        return tuple(ranked[:n])


# =============================================================================
# FLOW GRAPH
# =============================================================================

@dataclass(frozen=True)
class GraphNode:
    """A surviving (stage, value) pair."""
    node_id: int
    stage: Stage
    label: str
    full_label: str
    count: int


@dataclass(frozen=True)
class GraphEdge:
    """Accumulated transition between two surviving nodes."""
    source_node_id: int
    target_node_id: int
    weight: int


@dataclass(frozen=True)
class FlowGraph:
    """Pruned, weighted multi-stage graph."""
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]

    @staticmethod
    def empty() -> FlowGraph:
        return FlowGraph(nodes=(), edges=())

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def nodes_for_stage(self, stage: Stage) -> Tuple[GraphNode, ...]:
        return tuple(n for n in self.nodes if n.stage == stage)

    def to_networkx(self) -> nx.DiGraph:
        """Weighted DiGraph copy for downstream structural analysis."""
        graph = nx.DiGraph()
        for n in self.nodes:
            graph.add_node(n.node_id, stage=n.stage.value, label=n.full_label, count=n.count)
        for e in self.edges:
            graph.add_edge(e.source_node_id, e.target_node_id, weight=e.weight)
        return graph


# =============================================================================
# LAYOUT
# =============================================================================

@dataclass(frozen=True)
class LayoutNode:
    """GraphNode placed on the canvas."""
    node: GraphNode
    x: float
    y: float
    width: float
    height: float
    color: str

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class EdgeRender:
    """Rendering hint for one edge: endpoints, S-curve controls, thickness."""
    edge: GraphEdge
    x1: float
    y1: float
    x2: float
    y2: float
    control_1: Tuple[float, float]
    control_2: Tuple[float, float]
    thickness: float

    @property
    def path(self) -> str:
        """Cubic bezier path data."""
        return (
            f"M {self.x1:g} {self.y1:g} "
            f"C {self.control_1[0]:g} {self.control_1[1]:g} "
            f"{self.control_2[0]:g} {self.control_2[1]:g} "
            f"{self.x2:g} {self.y2:g}"
        )


@dataclass(frozen=True)
class StageHeader:
    stage: Stage
    x: float
    y: float
    color: str


@dataclass(frozen=True)
class FlowLayout:
    """
    Pre-layouted flow diagram.
    Layout depends only on per-stage node counts.
    """
    nodes: Tuple[LayoutNode, ...]
    edges: Tuple[EdgeRender, ...]
    headers: Tuple[StageHeader, ...]
    width: float
    height: float


# =============================================================================
# TRIGGERS / MOOD
# =============================================================================

@dataclass(frozen=True)
class TriggerCount:
    trigger: str
    intensity: float


@dataclass(frozen=True)
class MoodPoint:
    """One day of the mood fluctuation line chart."""
    date: Optional[date]
    label: str
    valence: Optional[float]
    moving_average: Optional[float]
    emotion: Optional[str]
