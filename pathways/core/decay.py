"""
Decay and Growth Laws
=====================

Closed-form evolution of a delta across one checkpoint interval, and its
algebraic inverse.

  decaying:  delta(t) = delta0 * 2^(-dt / half_life)
  need:      delta(t) = delta0 + growth_rate * dt
  permanent: delta(t) = delta0

dt is always internal days (real days x time_scale). Inverse decay
multiplies by 2^(+dt / half_life); the exponent is capped so the result
stays finite, and callers are told when the cap engaged.

held_exposure integrates |delta| over the same interval. It needs both
endpoints, so forward and inverse steps compute the same area.
"""

from __future__ import annotations
import math
from datetime import timedelta
from typing import Optional, Tuple

from ..contracts.base import SECONDS_PER_DAY
from ..contracts.dimensions import DimensionKind
from ..contracts.state import StateValue


DEFAULT_INVERSE_EXPONENT_LIMIT = 60.0


def half_life_days(half_life: Optional[timedelta]) -> Optional[float]:
    if half_life is None:
        return None
    value = half_life.total_seconds() / SECONDS_PER_DAY
    return value if value > 0.0 else None


def decay_delta(delta: float, half_life: Optional[timedelta], internal_days: float) -> float:
    hl = half_life_days(half_life)
    if hl is None or internal_days == 0.0 or delta == 0.0:
        return delta
    return delta * 2.0 ** (-internal_days / hl)


def undecay_delta(
    delta: float,
    half_life: Optional[timedelta],
    internal_days: float,
    exponent_limit: float = DEFAULT_INVERSE_EXPONENT_LIMIT,
) -> Tuple[float, bool]:
    """Inverse of decay_delta. Returns (delta0, limited)."""
    hl = half_life_days(half_life)
    if hl is None or internal_days == 0.0 or delta == 0.0:
        return delta, False
    exponent = internal_days / hl
    if exponent > exponent_limit:
        return delta * 2.0 ** exponent_limit, True
    return delta * 2.0 ** exponent, False


def grow_delta(delta: float, growth_rate: float, internal_days: float) -> float:
    return delta + growth_rate * internal_days


def ungrow_delta(delta: float, growth_rate: float, internal_days: float) -> float:
    return delta - growth_rate * internal_days


def evolve_forward(value: StateValue, kind: DimensionKind, internal_days: float) -> float:
    """New delta after `internal_days` of passive evolution."""
    if kind is DimensionKind.NEED:
        return grow_delta(value.delta, value.growth_rate, internal_days)
    if kind is DimensionKind.DECAYING:
        return decay_delta(value.delta, value.decay_half_life, internal_days)
    return value.delta


def evolve_backward(
    value: StateValue,
    kind: DimensionKind,
    internal_days: float,
    exponent_limit: float = DEFAULT_INVERSE_EXPONENT_LIMIT,
) -> Tuple[float, bool]:
    """Delta `internal_days` earlier. Returns (delta, inverse_limited)."""
    if kind is DimensionKind.NEED:
        return ungrow_delta(value.delta, value.growth_rate, internal_days), False
    if kind is DimensionKind.DECAYING:
        return undecay_delta(value.delta, value.decay_half_life, internal_days, exponent_limit)
    return value.delta, False


def held_exposure(
    value: StateValue,
    kind: DimensionKind,
    start: float,
    end: float,
    internal_days: float,
) -> float:
    """
    Area under |delta| between `start` and `end` across one interval.

    Only the delta actually held through the interval counts, so a delta
    that appears at the end of the interval contributes nothing.
    """
    if internal_days <= 0.0:
        return 0.0
    if kind is DimensionKind.DECAYING:
        hl = half_life_days(value.decay_half_life)
        if hl is None:
            return abs(start) * internal_days
        return max(0.0, abs(start) - abs(end)) * hl / math.log(2.0)
    if kind is DimensionKind.NEED:
        if start * end >= 0.0:
            return (abs(start) + abs(end)) / 2.0 * internal_days
        # linear path crossing zero: two triangles
        return (start * start + end * end) / (2.0 * abs(end - start)) * internal_days
    return abs(start) * internal_days
