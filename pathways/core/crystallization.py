"""
Crystallization Accumulator
===========================

Sustained deltas slowly become base. At every checkpoint each crystallizing
dimension gains exposure for the interval that ended there

    exposure += held * stage_plasticity

where `held` is the area under |delta| across the interval (see
core.decay.held_exposure). Once exposure reaches the dimension's threshold,
`fraction * delta` moves from delta into base and exposure drops by the
threshold. At most one conversion fires per checkpoint, and only at a
checkpoint whose interval actually held a delta. There is no severity cap
and no settling.

The inverse needs to know whether a conversion fired. Conversions are
written to the snapshot's crystallization ledger; where the ledger is
incomplete the inverse assumes none fired and reports whether that
assumption drove exposure negative.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ..contracts.dimensions import CrystallizationSpec


@dataclass(frozen=True)
class ForwardCrystallization:
    exposure: float
    converted: Optional[float] = None


@dataclass(frozen=True)
class Unconversion:
    exposure: float
    delta: float
    base_adjustment: float


@dataclass(frozen=True)
class ReleasedExposure:
    exposure: float
    history_unknown: bool = False


class CrystallizationAccumulator:
    def __init__(self, tolerance: float = 1e-9):
        self._tolerance = tolerance

    def forward(
        self,
        spec: CrystallizationSpec,
        exposure: float,
        held: float,
        delta: float,
        stage_plasticity: float,
    ) -> ForwardCrystallization:
        """`delta` is the current delta, after the checkpoint's event."""
        exposure += held * stage_plasticity
        if held <= 0.0 or exposure < spec.threshold or delta == 0.0:
            return ForwardCrystallization(exposure=exposure)
        return ForwardCrystallization(
            exposure=exposure - spec.threshold,
            converted=spec.fraction * delta,
        )

    @staticmethod
    def unconvert(
        spec: CrystallizationSpec,
        exposure: float,
        delta: float,
        converted: Optional[float],
    ) -> Unconversion:
        """Undo the ledger amount recorded at a checkpoint (None if no record)."""
        if converted is None:
            return Unconversion(exposure=exposure, delta=delta, base_adjustment=0.0)
        return Unconversion(
            exposure=exposure + spec.threshold,
            delta=delta + converted,
            base_adjustment=-converted,
        )

    def release(
        self,
        exposure: float,
        held: float,
        stage_plasticity: float,
        known_zone: bool,
    ) -> ReleasedExposure:
        """
        Walk exposure back across one interval. Outside the known zone a
        missing ledger record is an assumption rather than a fact, and a
        negative walk-back shows the assumption was wrong.
        """
        exposure -= held * stage_plasticity
        history_unknown = False
        if exposure < 0.0:
            if not known_zone and exposure < -self._tolerance:
                history_unknown = True
            exposure = 0.0
        return ReleasedExposure(exposure=exposure, history_unknown=history_unknown)
