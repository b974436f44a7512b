"""
Flow Layout Engine

Responsibility:
Deterministic transformation of a FlowGraph into a renderable FlowLayout.
Input: FlowGraph -> Output: FlowLayout (coordinates + curve hints)

STRUCTURAL ONLY:
Node placement depends on stage index, position within the stage and the
stage's node count. Edge weights only affect stroke thickness.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..contracts.base import Error, ErrorCode, Stage
from ..contracts.views import EdgeRender, FlowGraph, FlowLayout, LayoutNode, StageHeader
from ..observability import LogCollector


STAGE_COLORS: Dict[Stage, str] = {
    Stage.CIRCUMSTANCE: "#8b5cf6",
    Stage.TRIGGER: "#06b6d4",
    Stage.EMOTION: "#f59e0b",
    Stage.THOUGHT: "#ef4444",
    Stage.BEHAVIOR: "#10b981",
}


@dataclass(frozen=True)
class FlowLayoutConfig:
    """Canvas geometry, in pixels."""
    column_width: float = 160
    node_height: float = 40
    node_spacing: float = 15
    node_inset: float = 50          # node width = column_width - node_inset
    left_margin: float = 40
    right_padding: float = 80
    min_top: float = 100
    reference_height: float = 400   # block is centred within this height
    bottom_padding: float = 80
    min_canvas_height: float = 450
    header_y: float = 35
    curve_fraction: float = 0.6
    thickness_per_weight: float = 6
    min_thickness: float = 4
    max_thickness: float = 30

    def __post_init__(self):
        if self.node_inset >= self.column_width:
            raise ValueError("node_inset must be smaller than column_width")
        if self.min_thickness > self.max_thickness:
            raise ValueError("min_thickness must not exceed max_thickness")

    @property
    def node_width(self) -> float:
        return self.column_width - self.node_inset


def edge_thickness(weight: int, config: Optional[FlowLayoutConfig] = None) -> float:
    """Monotone in weight, clamped to [min_thickness, max_thickness]."""
    config = config or FlowLayoutConfig()
    return float(max(config.min_thickness,
                     min(config.max_thickness, weight * config.thickness_per_weight)))


def column_x(stage: Stage, config: FlowLayoutConfig) -> float:
    return stage.index * config.column_width + config.left_margin


def column_start_y(node_count: int, config: FlowLayoutConfig) -> float:
    """Top of a stage's node block, centred but never above min_top."""
    block = node_count * (config.node_height + config.node_spacing) - config.node_spacing
    return max(config.min_top, (config.reference_height - block) / 2)


def compute_flow_layout(
    graph: Optional[FlowGraph],
    config: Optional[FlowLayoutConfig] = None,
    collector: Optional[LogCollector] = None
) -> FlowLayout:
    """
    Place nodes column by column and derive edge curves.

    An empty or missing graph yields no nodes on a minimum-sized canvas.
    Edges whose endpoints are not laid out are dropped.
    """
    config = config or FlowLayoutConfig()
    if not isinstance(graph, FlowGraph):
        graph = FlowGraph.empty()
    stages = Stage.ordered()

    positioned: List[LayoutNode] = []
    for stage in stages:
        stage_nodes = graph.nodes_for_stage(stage)
        start_y = column_start_y(len(stage_nodes), config)
        x = column_x(stage, config)
        for index, node in enumerate(stage_nodes):
            positioned.append(LayoutNode(
                node=node,
                x=x,
                y=start_y + index * (config.node_height + config.node_spacing),
                width=config.node_width,
                height=config.node_height,
                color=STAGE_COLORS[stage]
            ))

    by_id = {placed.node.node_id: placed for placed in positioned}
    renders: List[EdgeRender] = []
    for edge in graph.edges:
        source = by_id.get(edge.source_node_id)
        target = by_id.get(edge.target_node_id)
        if source is None or target is None:
            if collector:
                collector.dropped("compute_flow_layout", Error(
                    code=ErrorCode.DANGLING_EDGE,
                    message="Edge endpoint is not part of the layout",
                    context=(
                        ("source", str(edge.source_node_id)),
                        ("target", str(edge.target_node_id)),
                    )
                ))
            continue

        x1 = source.x + source.width
        y1 = source.center_y
        x2 = target.x
        y2 = target.center_y
        offset = (x2 - x1) * config.curve_fraction

        renders.append(EdgeRender(
            edge=edge,
            x1=x1,
            y1=y1,
            x2=x2,
            y2=y2,
            control_1=(x1 + offset, y1),
            control_2=(x2 - offset, y2),
            thickness=edge_thickness(edge.weight, config)
        ))

    headers = tuple(
        StageHeader(
            stage=stage,
            x=column_x(stage, config) + config.node_width / 2,
            y=config.header_y,
            color=STAGE_COLORS[stage]
        )
        for stage in stages
    )

    max_bottom = max((placed.y + placed.height for placed in positioned), default=0.0)
    height = max(max_bottom + config.bottom_padding, config.min_canvas_height)
    width = len(stages) * config.column_width + config.right_padding

    return FlowLayout(
        nodes=tuple(positioned),
        edges=tuple(renders),
        headers=headers,
        width=float(width),
        height=float(height)
    )
