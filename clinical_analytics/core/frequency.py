"""
Frequency Aggregator
====================

Groups tagged events by category, keeps the most recent exemplar per
category and ranks categories by frequency.

ORDERING CONTRACT:
==================
- Count descending
- Equal counts keep first-seen order of the category in the source
- Colour index follows output position, never later filtering
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..contracts.base import Error, ErrorCode, truncate_label
from ..contracts.records import CategoryTagRecord, as_dataset
from ..contracts.views import AggregatedCategory
from ..observability import LogCollector


@dataclass(frozen=True)
class FrequencyConfig:
    """Display constants for the frequency chart."""
    label_max_length: int = 20
    label_keep: int = 17
    palette_size: int = 8

    def __post_init__(self):
        if self.palette_size < 1:
            raise ValueError("palette_size must be at least 1")
        if not 0 <= self.label_keep <= self.label_max_length:
            raise ValueError("label_keep must be between 0 and label_max_length")


@dataclass
class _CategoryAccumulator:
    count: int
    latest_excerpt: str
    latest_timestamp: Optional[datetime]

    def absorb(self, record: CategoryTagRecord):
        self.count += 1
        # Strict '>' keeps the first-seen exemplar on exact ties
        if record.timestamp is None:
            return
        if self.latest_timestamp is None or record.timestamp > self.latest_timestamp:
            self.latest_excerpt = record.excerpt
            self.latest_timestamp = record.timestamp


def aggregate_categories(
    records: Any,
    config: Optional[FrequencyConfig] = None,
    collector: Optional[LogCollector] = None
) -> Tuple[AggregatedCategory, ...]:
    """
    Rank categories by number of tagged events.

    Accepts CategoryTagRecord instances or wire dicts. Anything that is not
    a collection yields an empty result.
    """
    config = config or FrequencyConfig()
    items = as_dataset(records)
    if items is None:
        if records is not None and collector:
            collector.skipped("aggregate_categories", Error(
                code=ErrorCode.MALFORMED_DATASET,
                message=f"Dataset is not a collection: {type(records).__name__}"
            ))
        return ()

    # Phase 1: accumulate (insertion ordered)
    groups: Dict[str, _CategoryAccumulator] = {}
    for position, item in enumerate(items):
        parsed = CategoryTagRecord.from_wire(item)
        if parsed.is_failure:
            if collector:
                collector.skipped(
                    "aggregate_categories",
                    parsed.error.with_context("position", str(position))
                )
            continue

        record: CategoryTagRecord = parsed.value
        if record.category is None:
            if collector:
                collector.skipped("aggregate_categories", Error(
                    code=ErrorCode.MISSING_CATEGORY,
                    message="Record has no category",
                    context=(("position", str(position)),)
                ))
            continue

        accumulator = groups.get(record.category)
        if accumulator is None:
            groups[record.category] = _CategoryAccumulator(
                count=1,
                latest_excerpt=record.excerpt,
                latest_timestamp=record.timestamp
            )
        else:
            accumulator.absorb(record)

    # Phase 2: finalize
    ranked = sorted(groups.items(), key=lambda item: item[1].count, reverse=True)

    return tuple(
        AggregatedCategory(
            category=truncate_label(category, config.label_max_length, config.label_keep),
            full_category=category,
            count=acc.count,
            latest_excerpt=acc.latest_excerpt,
            color_index=position % config.palette_size
        )
        for position, (category, acc) in enumerate(ranked)
    )


def top_categories(
    aggregated: Tuple[AggregatedCategory, ...],
    n: int = 3
) -> Tuple[AggregatedCategory, ...]:
    """Leading categories for the summary panel."""
    return tuple(aggregated[:max(n, 0)])
