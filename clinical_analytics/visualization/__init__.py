"""Layout computation for the flow diagram. Painting is out of scope."""

from .flow_layout import (
    FlowLayoutConfig, STAGE_COLORS, compute_flow_layout, edge_thickness,
)

__all__ = ['FlowLayoutConfig', 'STAGE_COLORS', 'compute_flow_layout', 'edge_thickness']
