"""
Contracts Module

Explicit data shapes exchanged between the fetch layer, the transforms
and the rendering layer.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Errors are data, never exceptions escaping a transform
3. Absence of a dataset is explicit (AvailabilityState.MISSING)
"""

from .base import (
    ErrorCode, Error, Result, AvailabilityState, Stage, STAGE_ORDER,
    is_absent_stage_value, parse_timestamp, truncate_label,
)
from .records import (
    RESPONSE_CHANNELS, RESPONSE_LABELS,
    CategoryTagRecord, ResponseTally, SequenceTuple, TriggerDayTally, MoodSeries,
    as_dataset, coerce_channel_value, finite_number,
)
from .views import (
    AggregatedCategory, NormalizedResponseRow,
    GraphNode, GraphEdge, FlowGraph,
    LayoutNode, EdgeRender, StageHeader, FlowLayout,
    TriggerCount, MoodPoint,
)

__all__ = [
    # Base
    'ErrorCode', 'Error', 'Result', 'AvailabilityState', 'Stage', 'STAGE_ORDER',
    'is_absent_stage_value', 'parse_timestamp', 'truncate_label',
    # Records
    'RESPONSE_CHANNELS', 'RESPONSE_LABELS',
    'CategoryTagRecord', 'ResponseTally', 'SequenceTuple', 'TriggerDayTally', 'MoodSeries',
    'as_dataset', 'coerce_channel_value', 'finite_number',
    # Views
    'AggregatedCategory', 'NormalizedResponseRow',
    'GraphNode', 'GraphEdge', 'FlowGraph',
    'LayoutNode', 'EdgeRender', 'StageHeader', 'FlowLayout',
    'TriggerCount', 'MoodPoint',
]
