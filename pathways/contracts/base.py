"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
- Nothing here reads the wall clock; every instant is supplied by a caller
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from enum import Enum, auto
import hashlib


SECONDS_PER_DAY = 86400.0


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    No silent fallbacks - every error state is enumerated.
    """
    # Configuration errors
    DIMENSION_NOT_ACTIVE = auto()
    TRAIT_NOT_ACTIVE = auto()
    INVALID_CONFIGURATION = auto()
    UNKNOWN_ENTITY = auto()
    UNKNOWN_RELATIONSHIP = auto()
    DUPLICATE_ENTITY = auto()

    # Anchor errors
    ANCHOR_ALREADY_SET = auto()
    ANCHOR_MISSING = auto()

    # Input errors
    VALUE_OUT_OF_RANGE = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data - they are carried by the exceptions below and can be
    stored or compared like any other contract value.
    """
    code: ErrorCode
    message: str
    at: Optional[Timestamp] = None
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            at=self.at,
            context=self.context + ((key, value),)
        )


class PathwaysError(Exception):
    """Base exception. Always carries the structured Error it was raised for."""

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class ConfigurationError(PathwaysError):
    """A dimension, trait, entity or relationship is not configured."""


class AnchorViolationError(PathwaysError):
    """A second anchor was set, or a query ran before any anchor existed."""


class OutOfRangeInputError(PathwaysError, ValueError):
    """Input rejected at construction time, before any modifier is applied."""


def require_unit_range(name: str, value: float) -> float:
    """Reject values outside [-1, 1]."""
    if not -1.0 <= value <= 1.0:
        raise OutOfRangeInputError(Error(
            code=ErrorCode.VALUE_OUT_OF_RANGE,
            message=f"{name} must be within [-1, 1], got {value}",
            context=(("field", name), ("value", repr(value))),
        ))
    return value


# =============================================================================
# IDENTITY TYPES (Immutable, hash-verified)
# =============================================================================

@dataclass(frozen=True)
class EntityId:
    """Immutable entity identifier."""
    value: str

    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("EntityId value must be a non-empty string")

    def __lt__(self, other: EntityId) -> bool:
        return self.value < other.value


@dataclass(frozen=True)
class RelationshipId:
    """
    Identifier for an unordered entity pair.
    The same two entities always produce the same id, in either order.
    """
    value: str
    members: Tuple[EntityId, EntityId]

    @staticmethod
    def for_pair(a: EntityId, b: EntityId) -> RelationshipId:
        if a == b:
            raise ValueError("A relationship needs two distinct entities")
        low, high = sorted((a, b))
        seed = f"{low.value}|{high.value}"
        rel_hash = hashlib.sha256(seed.encode('utf-8')).hexdigest()[:16]
        return RelationshipId(value=f"rel_{rel_hash}", members=(low, high))

    def involves(self, entity_id: EntityId) -> bool:
        return entity_id in self.members


# =============================================================================
# TEMPORAL TYPES (Immutable, explicit semantics)
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time. Naive datetimes are read as UTC.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))
        elif self.value.utcoffset() != timedelta(0):
            object.__setattr__(self, 'value', self.value.astimezone(timezone.utc))

    @staticmethod
    def from_iso(iso_string: str) -> Timestamp:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        return Timestamp(value=dt)

    @staticmethod
    def from_ymd_hms(
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0
    ) -> Timestamp:
        return Timestamp(value=datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()

    def plus(self, delta: timedelta) -> Timestamp:
        return Timestamp(value=self.value + delta)

    def minus(self, delta: timedelta) -> Timestamp:
        return Timestamp(value=self.value - delta)

    def days_since(self, earlier: Timestamp) -> float:
        """Real elapsed days from `earlier` to this instant (negative if earlier is later)."""
        return (self.value - earlier.value).total_seconds() / SECONDS_PER_DAY

    def __lt__(self, other: Timestamp) -> bool:
        return self.value < other.value

    def __le__(self, other: Timestamp) -> bool:
        return self.value <= other.value

    def __gt__(self, other: Timestamp) -> bool:
        return self.value > other.value

    def __ge__(self, other: Timestamp) -> bool:
        return self.value >= other.value


@dataclass(frozen=True)
class TimeRange:
    """Immutable closed time range."""
    start: Timestamp
    end: Timestamp

    def __post_init__(self):
        if self.start.value > self.end.value:
            raise ValueError("TimeRange start must be before or equal to end")

    def contains(self, timestamp: Timestamp) -> bool:
        return self.start.value <= timestamp.value <= self.end.value
