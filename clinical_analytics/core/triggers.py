"""
Trigger Ranker

Collapses the weekday trigger pivot into a ranked intensity list.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import math

from ..contracts.base import Error, ErrorCode
from ..contracts.records import TriggerDayTally, finite_number
from ..contracts.views import TriggerCount
from ..observability import LogCollector


@dataclass(frozen=True)
class TriggerConfig:
    top_n: int = 6
    decimals: int = 1

    def __post_init__(self):
        if self.top_n < 1:
            raise ValueError("top_n must be at least 1")
        if self.decimals < 0:
            raise ValueError("decimals must be non-negative")


def _capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


def _round_half_up(value: float, decimals: int) -> float:
    scale = 10 ** decimals
    scaled = value * scale
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled + 0.5) / scale


def rank_triggers(
    tally: Any,
    config: Optional[TriggerConfig] = None,
    collector: Optional[LogCollector] = None
) -> Tuple[TriggerCount, ...]:
    """Sum intensities across days, highest first, top_n kept."""
    config = config or TriggerConfig()
    if tally is None:
        return ()

    parsed = TriggerDayTally.from_wire(tally)
    if parsed.is_failure:
        if collector:
            collector.skipped("rank_triggers", parsed.error)
        return ()

    totals: Dict[str, float] = {}
    for day, triggers in parsed.value.triggers_by_day:
        for trigger, intensity in triggers:
            number = finite_number(intensity)
            if number is None:
                if collector:
                    collector.skipped("rank_triggers", Error(
                        code=ErrorCode.INVALID_INTENSITY,
                        message="Intensity is not a finite number",
                        context=(("day", day), ("trigger", trigger))
                    ))
                continue
            totals[trigger] = totals.get(trigger, 0.0) + number

    # Rank on raw sums; rounding is display only
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return tuple(
        TriggerCount(
            trigger=_capitalize(trigger),
            intensity=_round_half_up(total, config.decimals)
        )
        for trigger, total in ranked[:config.top_n]
    )
