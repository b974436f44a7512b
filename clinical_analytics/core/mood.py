"""
Mood Series Builder

Zips the parallel mood arrays into one point per day. Ragged arrays are
tolerated: a day without a value gets None.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional, Tuple

from ..contracts.base import Error, ErrorCode, parse_timestamp
from ..contracts.records import MoodSeries, finite_number
from ..contracts.views import MoodPoint
from ..observability import LogCollector


_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _parse_day(value: Any) -> Optional[date]:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def _number_at(values: Tuple[Any, ...], index: int) -> Optional[float]:
    if index >= len(values):
        return None
    return finite_number(values[index])


def day_label(day: date) -> str:
    """Short chart label, e.g. 'Mar 7'."""
    return f"{_MONTHS[day.month - 1]} {day.day}"


def build_mood_series(
    series: Any,
    collector: Optional[LogCollector] = None
) -> Tuple[MoodPoint, ...]:
    if series is None:
        return ()

    parsed = MoodSeries.from_wire(series)
    if parsed.is_failure:
        if collector:
            collector.skipped("build_mood_series", parsed.error)
        return ()

    mood: MoodSeries = parsed.value
    points = []
    for index, raw_date in enumerate(mood.dates):
        day = _parse_day(raw_date)
        if day is None and collector:
            collector.coerced("build_mood_series", Error(
                code=ErrorCode.INVALID_TIMESTAMP,
                message="Date could not be parsed; raw text kept as label",
                context=(("position", str(index)),)
            ))

        emotion = mood.emotions[index] if index < len(mood.emotions) else None
        points.append(MoodPoint(
            date=day,
            label=day_label(day) if day else str(raw_date),
            valence=_number_at(mood.valence_scores, index),
            moving_average=_number_at(mood.moving_average, index),
            emotion=emotion if isinstance(emotion, str) else None
        ))

    return tuple(points)
