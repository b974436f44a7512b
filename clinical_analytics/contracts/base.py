"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- All types are frozen dataclasses or enums
- The absence rule for stage values lives here, and ONLY here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for record-level degradation.
    Every way a record can be skipped or coerced is enumerated.
    """
    # Input shape errors
    MALFORMED_DATASET = auto()
    MALFORMED_RECORD = auto()
    MISSING_CATEGORY = auto()
    INVALID_TIMESTAMP = auto()

    # Value errors
    INVALID_CHANNEL_VALUE = auto()
    INVALID_INTENSITY = auto()

    # Graph errors
    PRUNED_ENDPOINT = auto()
    DANGLING_EDGE = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            context=self.context + ((key, value),)
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# AVAILABILITY STATES (Explicit Absence)
# =============================================================================

class AvailabilityState(Enum):
    """
    Availability of a dataset handed to the engine.

    EXPLICIT ABSENCE:
    =================
    A dataset that has not been fetched yet is MISSING, never an error.
    """
    PRESENT = "present"     # Dataset supplied (possibly empty)
    MISSING = "missing"     # Dataset not loaded yet


# =============================================================================
# STAGES (Canonical order of a relapse sequence)
# =============================================================================

class Stage(Enum):
    """The five fixed phases of a relapse episode, in canonical order."""
    CIRCUMSTANCE = "circumstance"
    TRIGGER = "trigger"
    EMOTION = "emotion"
    THOUGHT = "thought"
    BEHAVIOR = "behavior"

    @property
    def index(self) -> int:
        return STAGE_ORDER.index(self)

    @classmethod
    def ordered(cls) -> Tuple[Stage, ...]:
        return STAGE_ORDER


STAGE_ORDER: Tuple[Stage, ...] = tuple(Stage)


def is_absent_stage_value(value: Any) -> bool:
    """
    Single absence rule for every stage.

    Absent: None, non-strings, empty/whitespace-only text, or the literal
    text "null" in any case.
    """
    if value is None or not isinstance(value, str):
        return True
    stripped = value.strip()
    return stripped == "" or stripped.lower() == "null"


# =============================================================================
# TEMPORAL HELPERS
# =============================================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a wire timestamp into an aware UTC-comparable datetime.

    Naive values are read as UTC so naive and aware records always compare.
    Returns None when the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def truncate_label(label: str, max_length: int, keep: int, marker: str = "...") -> str:
    """Cut a display label to `keep` characters plus marker when over `max_length`."""
    if len(label) > max_length:
        return label[:keep] + marker
    return label
