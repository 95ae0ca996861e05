"""
State Contracts
===============

Immutable state values, snapshots, ledgers and query results.

INVARIANTS:
===========
- effective = clamp(base + delta, min_bound, max_bound)
- base and delta are never clamped individually
- a Base Shift Record never changes after creation; only its time-dependent
  contribution does
- a snapshot's state_hash depends only on its content
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from enum import Enum
import hashlib

from .base import (
    Timestamp, Error, ErrorCode, ConfigurationError, AnchorViolationError,
)
from .dimensions import Dimension, Trait


# =============================================================================
# STATE VALUE
# =============================================================================

@dataclass(frozen=True)
class StateValue:
    """
    One dimension at one instant.

    decay_half_life and growth_rate are expressed in internal (time-scaled)
    days. A None or zero half-life means the delta does not decay.
    growth_rate is only used by needs.
    """
    base: float
    delta: float = 0.0
    min_bound: float = 0.0
    max_bound: float = 1.0
    decay_half_life: Optional[timedelta] = None
    growth_rate: float = 0.0

    def __post_init__(self):
        if self.min_bound >= self.max_bound:
            raise ValueError("StateValue min_bound must be below max_bound")

    @property
    def effective_raw(self) -> float:
        return self.base + self.delta

    @property
    def effective(self) -> float:
        return min(self.max_bound, max(self.min_bound, self.effective_raw))

    def is_clamped(self, tolerance: float = 0.0) -> bool:
        """True when base + delta lies outside the bounds."""
        raw = self.effective_raw
        return raw > self.max_bound + tolerance or raw < self.min_bound - tolerance

    def with_components(self, base: float, delta: float) -> StateValue:
        return StateValue(
            base=base,
            delta=delta,
            min_bound=self.min_bound,
            max_bound=self.max_bound,
            decay_half_life=self.decay_half_life,
            growth_rate=self.growth_rate,
        )


# =============================================================================
# LEDGER RECORDS
# =============================================================================

@dataclass(frozen=True)
class BaseShiftRecord:
    """
    A permanent, formative change to a personality trait's base.

    Severe records (non-zero settling duration) relax from `immediate`
    toward `settled` with an exponential settling curve. settling_half_life
    is measured in internal days; time_scale converts real elapsed time.
    """
    event_id: str
    timestamp: Timestamp
    trait: Trait
    immediate: float
    settled: float
    settling_duration: timedelta = timedelta(0)
    settling_half_life: float = 0.0
    time_scale: float = 1.0
    bounded: bool = False

    def __post_init__(self):
        if abs(self.settled) > abs(self.immediate) + 1e-12:
            raise ValueError("|settled| cannot exceed |immediate|")
        if not self.is_severe and self.settled != self.immediate:
            raise ValueError("Non-severe records must have settled == immediate")
        if self.is_severe and self.settling_half_life <= 0.0:
            raise ValueError("Severe records need a positive settling half-life")
        if self.time_scale <= 0.0:
            raise ValueError("time_scale must be positive")

    @property
    def is_severe(self) -> bool:
        return self.settling_duration > timedelta(0)

    @property
    def direction(self) -> int:
        if self.immediate > 0.0:
            return 1
        if self.immediate < 0.0:
            return -1
        return 0

    def contribution_at(self, t: Timestamp) -> float:
        """Contribution to the trait base at `t`; zero before the record exists."""
        if t < self.timestamp:
            return 0.0
        if not self.is_severe:
            return self.immediate
        internal_days = t.days_since(self.timestamp) * self.time_scale
        remaining = 2.0 ** (-internal_days / self.settling_half_life)
        return self.settled + (self.immediate - self.settled) * remaining


@dataclass(frozen=True)
class CrystallizationRecord:
    """A conversion of delta into base. event_id is None at boundary checkpoints."""
    timestamp: Timestamp
    dimension: Dimension
    amount: float
    event_id: Optional[str] = None

    def matches(self, timestamp: Timestamp, dimension: Dimension, event_id: Optional[str]) -> bool:
        return (
            self.timestamp == timestamp
            and self.dimension == dimension
            and self.event_id == event_id
        )


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class StateSnapshot:
    """
    Fully materialized state at one instant.

    history_start marks the instant after which the ledgers are complete.
    Checkpoints later than history_start are the "known zone".
    """
    timestamp: Timestamp
    values: Tuple[Tuple[Dimension, StateValue], ...]
    exposure: Tuple[Tuple[Dimension, float], ...] = field(default_factory=tuple)
    shift_records: Tuple[BaseShiftRecord, ...] = field(default_factory=tuple)
    crystallization_records: Tuple[CrystallizationRecord, ...] = field(default_factory=tuple)
    history_start: Optional[Timestamp] = None

    def __post_init__(self):
        dims = [dim for dim, _ in self.values]
        if len(set(dims)) != len(dims):
            raise ValueError("Snapshot values contain a duplicate dimension")
        object.__setattr__(self, 'values', tuple(sorted(self.values, key=lambda item: item[0])))
        object.__setattr__(self, 'exposure', tuple(sorted(
            ((dim, e) for dim, e in self.exposure if e != 0.0), key=lambda item: item[0]
        )))
        if self.history_start is None:
            object.__setattr__(self, 'history_start', self.timestamp)
        elif self.history_start > self.timestamp:
            raise ValueError("history_start cannot be after the snapshot timestamp")
        for record in self.shift_records:
            if record.timestamp > self.timestamp:
                raise ValueError(f"Shift record {record.event_id} is later than the snapshot")
        for record in self.crystallization_records:
            if record.timestamp > self.timestamp:
                raise ValueError("Crystallization record is later than the snapshot")

    @staticmethod
    def create(
        timestamp: Timestamp,
        values: Dict[Dimension, StateValue],
        exposure: Optional[Dict[Dimension, float]] = None,
        shift_records: Iterable[BaseShiftRecord] = (),
        crystallization_records: Iterable[CrystallizationRecord] = (),
        history_start: Optional[Timestamp] = None,
    ) -> StateSnapshot:
        return StateSnapshot(
            timestamp=timestamp,
            values=tuple(values.items()),
            exposure=tuple((exposure or {}).items()),
            shift_records=tuple(shift_records),
            crystallization_records=tuple(crystallization_records),
            history_start=history_start,
        )

    @property
    def dimensions(self) -> Tuple[Dimension, ...]:
        return tuple(dim for dim, _ in self.values)

    def values_by_dimension(self) -> Dict[Dimension, StateValue]:
        return dict(self.values)

    def exposure_by_dimension(self) -> Dict[Dimension, float]:
        return dict(self.exposure)

    def has(self, dimension: Dimension) -> bool:
        return any(dim == dimension for dim, _ in self.values)

    def value(self, dimension: Dimension) -> StateValue:
        for dim, value in self.values:
            if dim == dimension:
                return value
        raise ConfigurationError(Error(
            code=ErrorCode.DIMENSION_NOT_ACTIVE,
            message=f"Dimension {dimension.value} is not part of this state",
            at=self.timestamp,
            context=(("dimension", dimension.value),),
        ))

    def effective(self, dimension: Dimension) -> float:
        return self.value(dimension).effective

    def exposure_for(self, dimension: Dimension) -> float:
        return dict(self.exposure).get(dimension, 0.0)

    def records_for(self, trait: Trait) -> Tuple[BaseShiftRecord, ...]:
        return tuple(r for r in self.shift_records if r.trait == trait)

    def compute_hash(self) -> str:
        """Deterministic hash over every field; floats are rendered with repr()."""
        parts: List[str] = [self.timestamp.to_iso(), self.history_start.to_iso()]
        for dim, sv in self.values:
            half_life = sv.decay_half_life.total_seconds() if sv.decay_half_life else None
            parts.append(
                f"{dim.value}:{sv.base!r}:{sv.delta!r}:{sv.min_bound!r}:"
                f"{sv.max_bound!r}:{half_life!r}:{sv.growth_rate!r}"
            )
        for dim, e in self.exposure:
            parts.append(f"exposure:{dim.value}:{e!r}")
        for r in self.shift_records:
            parts.append(
                f"shift:{r.event_id}:{r.timestamp.to_iso()}:{r.trait.value}:"
                f"{r.immediate!r}:{r.settled!r}:{r.settling_duration.total_seconds()!r}:"
                f"{r.settling_half_life!r}:{r.time_scale!r}:{r.bounded}"
            )
        for c in self.crystallization_records:
            parts.append(f"crystal:{c.timestamp.to_iso()}:{c.dimension.value}:{c.amount!r}:{c.event_id}")
        return hashlib.sha256("|".join(parts).encode('utf-8')).hexdigest()

    @property
    def state_hash(self) -> str:
        return self.compute_hash()


# =============================================================================
# ANCHOR
# =============================================================================

@dataclass(frozen=True)
class Anchor:
    """The single pinned, authoritative snapshot of a timeline."""
    snapshot: StateSnapshot

    @property
    def timestamp(self) -> Timestamp:
        return self.snapshot.timestamp

    @property
    def history_start(self) -> Timestamp:
        return self.snapshot.history_start


def missing_anchor(subject: str) -> AnchorViolationError:
    return AnchorViolationError(Error(
        code=ErrorCode.ANCHOR_MISSING,
        message=f"{subject} has no anchor; set one before querying",
        context=(("subject", subject),),
    ))


# =============================================================================
# QUERY RESULT
# =============================================================================

class QueryDirection(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    AT_ANCHOR = "at_anchor"


class RegressionQuality(Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"


class ApproximationCause(Enum):
    """Why a backward regression could not be exact."""
    VALUE_CLAMPED = "value_clamped"
    SHIFT_BOUNDED = "shift_bounded"
    CRYSTALLIZATION_HISTORY_UNKNOWN = "crystallization_history_unknown"
    DECAY_INVERSE_LIMITED = "decay_inverse_limited"


class LifeStage(Enum):
    CHILD = "child"
    ADOLESCENT = "adolescent"
    YOUNG_ADULT = "young_adult"
    ADULT = "adult"
    MATURE_ADULT = "mature_adult"
    ELDER = "elder"


@dataclass(frozen=True)
class Approximation:
    dimension: Dimension
    cause: ApproximationCause
    at: Timestamp


@dataclass(frozen=True)
class ComputedState:
    """Result of one state query. Carries provenance but no references into the engine."""
    snapshot: StateSnapshot
    direction: QueryDirection
    regression_quality: RegressionQuality = RegressionQuality.EXACT
    approximations: Tuple[Approximation, ...] = field(default_factory=tuple)
    active_shift_records: Tuple[BaseShiftRecord, ...] = field(default_factory=tuple)
    age_years: Optional[float] = None
    life_stage: Optional[LifeStage] = None
    checkpoints_processed: int = 0
    clamped: Tuple[Dimension, ...] = field(default_factory=tuple)

    @property
    def timestamp(self) -> Timestamp:
        return self.snapshot.timestamp

    @property
    def is_exact(self) -> bool:
        return self.regression_quality is RegressionQuality.EXACT

    @property
    def approximation_causes(self) -> Tuple[ApproximationCause, ...]:
        seen: List[ApproximationCause] = []
        for approximation in self.approximations:
            if approximation.cause not in seen:
                seen.append(approximation.cause)
        return tuple(seen)

    def effective(self, dimension: Dimension) -> float:
        return self.snapshot.effective(dimension)

    def value(self, dimension: Dimension) -> StateValue:
        return self.snapshot.value(dimension)
