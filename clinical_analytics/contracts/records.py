"""
Input Record Contracts

Immutable records as delivered by the external data-fetch layer.

PARSING RULES:
==============
1. Wire payloads are REST-shaped dicts; parsing never raises
2. A record is rejected ONLY when a required field is absent
3. Coerced values are flagged on the record, never silently fixed
4. Records are read-only to every transform
"""

from __future__ import annotations
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, List, Optional, Tuple
import math

from .base import STAGE_ORDER, Error, ErrorCode, Result, Stage, parse_timestamp


# =============================================================================
# WIRE KEYS
# =============================================================================

TAG_CATEGORY_KEY = "distortion_type"
TAG_TIMESTAMP_KEY = "created_at"
TAG_EXCERPT_KEY = "voice_note_excerpt"

# Canonical channel order; percentages and tie-breaks follow it.
RESPONSE_CHANNELS: Tuple[str, ...] = (
    "body_image",
    "social_stress",
    "shame",
    "comparison",
    "anxiety_fear",
    "perfectionism",
    "loss_of_control",
    "loneliness",
)

RESPONSE_LABELS: Tuple[str, ...] = (
    "Body Image",
    "Social Stress",
    "Shame",
    "Comparison",
    "Anxiety/Fear",
    "Perfectionism",
    "Loss of Control",
    "Loneliness",
)


def as_dataset(value: Any) -> Optional[List[Any]]:
    """
    Materialize a dataset as a list.

    Returns None for anything that is not a well-formed collection
    (None, scalars, text, mappings).
    """
    if value is None or isinstance(value, (str, bytes, bytearray, Mapping)):
        return None
    if isinstance(value, Sequence):
        return list(value)
    return None


def finite_number(value: Any) -> Optional[float]:
    """Value as a finite float, or None. Bools and ints beyond float range are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def coerce_channel_value(value: Any) -> Optional[float]:
    """Numeric channel value, or None when missing/non-numeric/non-finite/negative."""
    number = finite_number(value)
    if number is None or number < 0:
        return None
    return number


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


# =============================================================================
# CATEGORY TAGS
# =============================================================================

@dataclass(frozen=True)
class CategoryTagRecord:
    """One observed tagged event (e.g. a cognitive distortion in a voice note)."""
    category: str
    timestamp: Optional[datetime]
    excerpt: str = ""

    @staticmethod
    def from_wire(data: Any) -> Result:
        """Parse a wire record; only a missing category rejects it."""
        if isinstance(data, CategoryTagRecord):
            # Instances get the same UTC normalisation as wire timestamps
            return Result.success(replace(data, timestamp=parse_timestamp(data.timestamp)))
        if not isinstance(data, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=f"Expected a mapping, got {type(data).__name__}"
            ))

        category = data.get(TAG_CATEGORY_KEY)
        if category is None:
            return Result.failure(Error(
                code=ErrorCode.MISSING_CATEGORY,
                message="Record has no category"
            ))

        return Result.success(CategoryTagRecord(
            category=_optional_text(category),
            timestamp=parse_timestamp(data.get(TAG_TIMESTAMP_KEY)),
            excerpt=_optional_text(data.get(TAG_EXCERPT_KEY)) or ""
        ))


# =============================================================================
# RESPONSE TALLIES
# =============================================================================

@dataclass(frozen=True)
class ResponseTally:
    """
    One reporting period of emotional-response counts for a category.

    `channels` follows RESPONSE_CHANNELS order. Channels that arrived
    unusable are recorded in `invalid_channels` and carried as 0.
    """
    category: str
    channels: Tuple[float, ...]
    report_period: Optional[str] = None
    created_at: Optional[datetime] = None
    invalid_channels: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.channels) != len(RESPONSE_CHANNELS):
            raise ValueError(
                f"ResponseTally needs {len(RESPONSE_CHANNELS)} channels, "
                f"got {len(self.channels)}"
            )

    @staticmethod
    def from_wire(data: Any) -> Result:
        if isinstance(data, ResponseTally):
            return Result.success(data)
        if not isinstance(data, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=f"Expected a mapping, got {type(data).__name__}"
            ))

        category = data.get("category")
        if category is None:
            return Result.failure(Error(
                code=ErrorCode.MISSING_CATEGORY,
                message="Tally has no category"
            ))

        values = []
        invalid = []
        for channel in RESPONSE_CHANNELS:
            number = coerce_channel_value(data.get(channel))
            if number is None:
                invalid.append(channel)
                number = 0.0
            values.append(number)

        return Result.success(ResponseTally(
            category=_optional_text(category),
            channels=tuple(values),
            report_period=_optional_text(data.get("report_period")),
            created_at=parse_timestamp(data.get("created_at")),
            invalid_channels=tuple(invalid)
        ))


# =============================================================================
# RELAPSE SEQUENCES
# =============================================================================

@dataclass(frozen=True)
class SequenceTuple:
    """
    Ordered stage values of one relapse episode.

    Values are kept exactly as supplied; absence is decided downstream by
    the shared predicate.
    """
    circumstance: Any = None
    trigger: Any = None
    emotion: Any = None
    thought: Any = None
    behavior: Any = None
    analysis_date: Optional[str] = None

    def stage_values(self) -> Tuple[Tuple[Stage, Any], ...]:
        """All five (stage, raw value) pairs in canonical order."""
        return tuple((stage, getattr(self, stage.value)) for stage in Stage.ordered())

    @staticmethod
    def from_wire(data: Any) -> Result:
        if isinstance(data, SequenceTuple):
            return Result.success(data)
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
            # Plain ordered 5-tuple: circumstance -> behavior
            if len(data) != len(STAGE_ORDER):
                return Result.failure(Error(
                    code=ErrorCode.MALFORMED_RECORD,
                    message=f"Expected {len(STAGE_ORDER)} stage values, got {len(data)}"
                ))
            return Result.success(SequenceTuple(*data))
        if not isinstance(data, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=f"Expected a mapping or stage tuple, got {type(data).__name__}"
            ))

        return Result.success(SequenceTuple(
            circumstance=data.get("circumstance"),
            trigger=data.get("trigger"),
            emotion=data.get("emotion"),
            thought=data.get("thought"),
            behavior=data.get("behavior"),
            analysis_date=_optional_text(data.get("analysis_date"))
        ))


# =============================================================================
# TRIGGER INTENSITIES (weekday pivot)
# =============================================================================

@dataclass(frozen=True)
class TriggerDayTally:
    """Trigger intensities keyed by weekday, in wire order."""
    days: Tuple[str, ...]
    triggers_by_day: Tuple[Tuple[str, Tuple[Tuple[str, Any], ...]], ...]

    @staticmethod
    def from_wire(data: Any) -> Result:
        if isinstance(data, TriggerDayTally):
            return Result.success(data)
        if not isinstance(data, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_DATASET,
                message=f"Expected a mapping, got {type(data).__name__}"
            ))

        by_day = data.get("triggersByDay")
        if not isinstance(by_day, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_DATASET,
                message="Payload has no triggersByDay mapping"
            ))

        days = as_dataset(data.get("days")) or []
        pivot = []
        for day, triggers in by_day.items():
            if not isinstance(triggers, Mapping):
                continue
            pivot.append((str(day), tuple((str(k), v) for k, v in triggers.items())))

        return Result.success(TriggerDayTally(
            days=tuple(str(d) for d in days),
            triggers_by_day=tuple(pivot)
        ))


# =============================================================================
# MOOD SERIES
# =============================================================================

@dataclass(frozen=True)
class MoodSeries:
    """Parallel daily arrays; lengths are not guaranteed to match."""
    dates: Tuple[Any, ...]
    valence_scores: Tuple[Any, ...] = field(default_factory=tuple)
    emotions: Tuple[Any, ...] = field(default_factory=tuple)
    moving_average: Tuple[Any, ...] = field(default_factory=tuple)

    @staticmethod
    def from_wire(data: Any) -> Result:
        if isinstance(data, MoodSeries):
            return Result.success(data)
        if not isinstance(data, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_DATASET,
                message=f"Expected a mapping, got {type(data).__name__}"
            ))

        return Result.success(MoodSeries(
            dates=tuple(as_dataset(data.get("dates")) or ()),
            valence_scores=tuple(as_dataset(data.get("valenceScores")) or ()),
            emotions=tuple(as_dataset(data.get("emotions")) or ()),
            moving_average=tuple(as_dataset(data.get("movingAverage")) or ())
        ))
