"""
Formative Modifier Calculator
=============================

Turns a raw trait shift request into a Base Shift Record.

    applied = r * age_plasticity(age)
                * (1 - trait_stability(trait))
                * sensitive_period_modifier(trait, age)
                * saturation(cumulative)

followed by the single-event cap and then the lifetime cap. Shifts larger
than the severe threshold settle toward a retained fraction of their
immediate value.

GUARANTEES:
===========
- Pure: identical inputs always produce an identical record
- |applied| <= single_event_cap
- cumulative same-direction |immediate| on a trait never exceeds lifetime_cap
"""

from __future__ import annotations
from datetime import timedelta
from typing import Iterable, Optional

from ..contracts.base import Timestamp
from ..contracts.dimensions import Trait
from ..contracts.state import BaseShiftRecord
from .tables import ParameterTables, DEFAULT_TABLES


def _sign(value: float) -> int:
    if value > 0.0:
        return 1
    if value < 0.0:
        return -1
    return 0


class FormativeCalculator:
    """Stateless; the prior ledger is always passed in."""

    def __init__(self, tables: ParameterTables = DEFAULT_TABLES):
        self._tables = tables

    @property
    def tables(self) -> ParameterTables:
        return self._tables

    def cumulative(self, prior: Iterable[BaseShiftRecord], trait: Trait, direction: int) -> float:
        """Sum of |immediate| over prior records on `trait` in `direction`."""
        return sum(
            abs(record.immediate)
            for record in prior
            if record.trait == trait and record.direction == direction
        )

    def modified_magnitude(
        self,
        requested: float,
        trait: Trait,
        age_years: Optional[float],
        cumulative: float,
    ) -> float:
        """The product of all modifiers, before either cap."""
        t = self._tables
        return (
            requested
            * t.age_plasticity(age_years)
            * (1.0 - t.stability(trait))
            * t.sensitive_period_modifier(trait, age_years)
            * t.saturation(cumulative)
        )

    def compute(
        self,
        event_id: str,
        timestamp: Timestamp,
        trait: Trait,
        requested: float,
        age_years: Optional[float],
        prior: Iterable[BaseShiftRecord],
        time_scale: float = 1.0,
    ) -> BaseShiftRecord:
        t = self._tables
        direction = _sign(requested)
        cumulative = self.cumulative(prior, trait, direction) if direction else 0.0

        applied = self.modified_magnitude(requested, trait, age_years, cumulative)
        bounded = direction != 0 and cumulative >= t.lifetime_cap

        if abs(applied) > t.single_event_cap:
            applied = direction * t.single_event_cap
            bounded = True

        remaining = max(0.0, t.lifetime_cap - cumulative)
        if abs(applied) > remaining:
            applied = direction * remaining
            bounded = True

        if abs(applied) <= t.severe_threshold:
            return BaseShiftRecord(
                event_id=event_id,
                timestamp=timestamp,
                trait=trait,
                immediate=applied,
                settled=applied,
                time_scale=time_scale,
                bounded=bounded,
            )

        # Settling runs in internal time; the stored duration is real time.
        internal_duration = t.settling_duration_days
        return BaseShiftRecord(
            event_id=event_id,
            timestamp=timestamp,
            trait=trait,
            immediate=applied,
            settled=applied * t.settling_retention,
            settling_duration=timedelta(days=internal_duration / time_scale),
            settling_half_life=internal_duration / t.settling_half_lives_per_duration,
            time_scale=time_scale,
            bounded=bounded,
        )
