"""
Derived Risk Factors
====================

Read-only interpersonal-theory factors computed from a state's effective
values. Nothing here feeds back into the invertible core; these are views.

    thwarted belongingness   TB = (loneliness + (1 - perceived caring)) / 2
    perceived burdensomeness PB = perceived liability * self hate
    desire                   TB * PB, only when TB, PB and interpersonal
                             hopelessness all reach their thresholds
    attempt risk             desire * acquired capability
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
from enum import Enum

from ..contracts.dimensions import Dimension
from ..contracts.state import StateSnapshot, ComputedState


TB_PRESENT_THRESHOLD = 0.5
PB_PRESENT_THRESHOLD = 0.5
HOPELESSNESS_THRESHOLD = 0.5
AC_ELEVATED_THRESHOLD = 0.3
PASSIVE_IDEATION_THRESHOLD = 0.3
SIGNIFICANT_RISK_THRESHOLD = 0.3


class ProximalFactor(Enum):
    THWARTED_BELONGINGNESS = "TB"
    PERCEIVED_BURDENSOMENESS = "PB"
    ACQUIRED_CAPABILITY = "AC"


@dataclass(frozen=True)
class ConvergenceStatus:
    """Which proximal factors are elevated, and which exceeds its threshold most."""
    tb_elevated: bool
    pb_elevated: bool
    ac_elevated: bool
    highest_factor: Optional[ProximalFactor] = None

    @staticmethod
    def from_factors(tb: float, pb: float, ac: float) -> ConvergenceStatus:
        excess = []
        if tb >= TB_PRESENT_THRESHOLD:
            excess.append((tb - TB_PRESENT_THRESHOLD, 0, ProximalFactor.THWARTED_BELONGINGNESS))
        if pb >= PB_PRESENT_THRESHOLD:
            excess.append((pb - PB_PRESENT_THRESHOLD, 1, ProximalFactor.PERCEIVED_BURDENSOMENESS))
        if ac >= AC_ELEVATED_THRESHOLD:
            excess.append((ac - AC_ELEVATED_THRESHOLD, 2, ProximalFactor.ACQUIRED_CAPABILITY))
        # Largest excess wins; ties go to TB, then PB
        highest = min(excess, key=lambda item: (-item[0], item[1]))[2] if excess else None
        return ConvergenceStatus(
            tb_elevated=tb >= TB_PRESENT_THRESHOLD,
            pb_elevated=pb >= PB_PRESENT_THRESHOLD,
            ac_elevated=ac >= AC_ELEVATED_THRESHOLD,
            highest_factor=highest,
        )

    @property
    def elevated_factors(self) -> Tuple[ProximalFactor, ...]:
        flags = (
            (self.tb_elevated, ProximalFactor.THWARTED_BELONGINGNESS),
            (self.pb_elevated, ProximalFactor.PERCEIVED_BURDENSOMENESS),
            (self.ac_elevated, ProximalFactor.ACQUIRED_CAPABILITY),
        )
        return tuple(factor for elevated, factor in flags if elevated)

    @property
    def is_three_factor_convergent(self) -> bool:
        return len(self.elevated_factors) == 3

    @property
    def has_desire(self) -> bool:
        return self.tb_elevated and self.pb_elevated

    @property
    def is_dormant_capability(self) -> bool:
        return self.ac_elevated and not self.has_desire


@dataclass(frozen=True)
class RiskFactors:
    thwarted_belongingness: float
    perceived_burdensomeness: float
    acquired_capability: float
    desire: float
    attempt_risk: float
    passive_ideation_present: bool
    convergence: ConvergenceStatus

    @property
    def has_active_desire(self) -> bool:
        return self.desire > 0.0

    @property
    def has_significant_risk(self) -> bool:
        return self.attempt_risk > SIGNIFICANT_RISK_THRESHOLD


def thwarted_belongingness(loneliness: float, perceived_caring: float) -> float:
    return (loneliness + (1.0 - perceived_caring)) / 2.0


def perceived_burdensomeness(liability: float, self_hate: float) -> float:
    return liability * self_hate


def desire(tb: float, pb: float, interpersonal_hopelessness: float) -> float:
    if (
        tb < TB_PRESENT_THRESHOLD
        or pb < PB_PRESENT_THRESHOLD
        or interpersonal_hopelessness < HOPELESSNESS_THRESHOLD
    ):
        return 0.0
    return min(1.0, max(0.0, tb * pb))


def compute_risk_factors(state) -> RiskFactors:
    """
    Accepts a StateSnapshot or a ComputedState. Raises ConfigurationError
    if the state lacks one of the social-cognition or mental-health
    dimensions involved.
    """
    snapshot: StateSnapshot = state.snapshot if isinstance(state, ComputedState) else state

    tb = thwarted_belongingness(
        snapshot.effective(Dimension.LONELINESS),
        snapshot.effective(Dimension.PERCEIVED_RECIPROCAL_CARING),
    )
    pb = perceived_burdensomeness(
        snapshot.effective(Dimension.PERCEIVED_LIABILITY),
        snapshot.effective(Dimension.SELF_HATE),
    )
    ac = snapshot.effective(Dimension.ACQUIRED_CAPABILITY)
    wish = desire(tb, pb, snapshot.effective(Dimension.INTERPERSONAL_HOPELESSNESS))

    return RiskFactors(
        thwarted_belongingness=tb,
        perceived_burdensomeness=pb,
        acquired_capability=ac,
        desire=wish,
        attempt_risk=wish * ac,
        passive_ideation_present=tb > PASSIVE_IDEATION_THRESHOLD or pb > PASSIVE_IDEATION_THRESHOLD,
        convergence=ConvergenceStatus.from_factors(tb, pb, ac),
    )
