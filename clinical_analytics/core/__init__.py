"""
Core Transforms

Pure, synchronous functions from raw record collections to summary
structures. No transform raises, holds state, or depends on UI state.
"""

from .frequency import FrequencyConfig, aggregate_categories, top_categories
from .percentages import ResponseConfig, normalize_responses, normalize_shares
from .sequence_graph import SequenceGraphConfig, build_sequence_graph, present_stages
from .triggers import TriggerConfig, rank_triggers
from .mood import build_mood_series

__all__ = [
    'FrequencyConfig', 'aggregate_categories', 'top_categories',
    'ResponseConfig', 'normalize_responses', 'normalize_shares',
    'SequenceGraphConfig', 'build_sequence_graph', 'present_stages',
    'TriggerConfig', 'rank_triggers',
    'build_mood_series',
]
