"""
Percentage Normalizer
=====================

Turns per-category emotional-response tallies into integer percentages
for a 100%-stacked bar chart.

EXACT-100 GUARANTEE:
====================
1. Sum raw channel totals per category
2. Zero grand total -> explicit all-zero row
3. Round each share half-up
4. Push the whole residual onto the channel with the largest raw share
   (first such channel in canonical order)

The residual can be up to +/-4 with eight channels. The largest raw share
is at least 12.5, so its rounded value always absorbs a negative residual
without going below zero.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..contracts.base import Error, ErrorCode
from ..contracts.records import (
    RESPONSE_CHANNELS, ResponseTally, as_dataset, coerce_channel_value
)
from ..contracts.views import NormalizedResponseRow
from ..observability import LogCollector


@dataclass(frozen=True)
class ResponseConfig:
    """Target total for the stacked bars."""
    target_total: int = 100

    def __post_init__(self):
        if self.target_total < 1:
            raise ValueError("target_total must be positive")


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round to nearest integer, halves upward."""
    return np.floor(values + 0.5).astype(np.int64)


def normalize_shares(totals, target_total: int = 100) -> Tuple[int, ...]:
    """
    Integer shares of `target_total` for one category.

    All zeros when the grand total is zero; otherwise the result sums to
    exactly `target_total`.
    """
    raw_totals = np.asarray(totals, dtype=np.float64)
    # Overflowed accumulations saturate at the largest finite float
    raw_totals = np.clip(
        np.nan_to_num(raw_totals, nan=0.0, posinf=np.finfo(np.float64).max, neginf=0.0),
        0.0, None
    )
    if len(raw_totals) == 0 or raw_totals.max() <= 0:
        return tuple(0 for _ in range(len(raw_totals)))

    # Power-of-two rescale is exact, so shares are unchanged while the sum stays finite
    _, exponent = np.frexp(raw_totals.max())
    raw_totals = np.ldexp(raw_totals, -int(exponent))
    grand_total = raw_totals.sum()

    raw = target_total * raw_totals / grand_total
    rounded = round_half_up(raw)

    diff = target_total - int(rounded.sum())
    if diff != 0:
        # argmax returns the first maximum
        rounded[int(np.argmax(raw))] += diff

    return tuple(int(v) for v in rounded)


def normalize_responses(
    tallies: Any,
    config: Optional[ResponseConfig] = None,
    collector: Optional[LogCollector] = None
) -> Tuple[NormalizedResponseRow, ...]:
    """One row per distinct category, sorted by category name."""
    config = config or ResponseConfig()
    items = as_dataset(tallies)
    if items is None:
        if tallies is not None and collector:
            collector.skipped("normalize_responses", Error(
                code=ErrorCode.MALFORMED_DATASET,
                message=f"Dataset is not a collection: {type(tallies).__name__}"
            ))
        return ()

    # Phase 1: accumulate plain totals
    accumulators: Dict[str, np.ndarray] = {}
    for position, item in enumerate(items):
        parsed = ResponseTally.from_wire(item)
        if parsed.is_failure:
            if collector:
                collector.skipped(
                    "normalize_responses",
                    parsed.error.with_context("position", str(position))
                )
            continue

        tally: ResponseTally = parsed.value
        if tally.category is None:
            if collector:
                collector.skipped("normalize_responses", Error(
                    code=ErrorCode.MISSING_CATEGORY,
                    message="Tally has no category",
                    context=(("position", str(position)),)
                ))
            continue

        values = []
        invalid = list(tally.invalid_channels)
        for channel, value in zip(RESPONSE_CHANNELS, tally.channels):
            number = coerce_channel_value(value)
            if number is None:
                number = 0.0
                if channel not in invalid:
                    invalid.append(channel)
            values.append(number)

        if invalid and collector:
            collector.coerced("normalize_responses", Error(
                code=ErrorCode.INVALID_CHANNEL_VALUE,
                message="Unusable channel values counted as 0",
                context=(("position", str(position)), ("channels", ",".join(invalid)))
            ), entity_id=tally.category)

        if tally.category not in accumulators:
            accumulators[tally.category] = np.zeros(len(RESPONSE_CHANNELS), dtype=np.float64)
        accumulators[tally.category] += np.asarray(values, dtype=np.float64)

    # Phase 2: finalize
    rows = [
        NormalizedResponseRow(
            category=category,
            percentages=normalize_shares(totals, config.target_total)
        )
        for category, totals in accumulators.items()
    ]
    rows.sort(key=lambda row: row.category)
    return tuple(rows)
