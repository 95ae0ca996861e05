"""
Parameter Tables
================

Immutable lookup tables for the formative and crystallization mechanics.
A process-wide default (DEFAULT_TABLES) exists; alternative tables are
passed in explicitly, never patched globally.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import math

from ..contracts.dimensions import Trait
from ..contracts.state import LifeStage


HUMAN_LIFESPAN_YEARS = 80.0


@dataclass(frozen=True)
class SensitivePeriod:
    """Inclusive whole-year age range with an amplifying multiplier."""
    start_age: int
    end_age: int
    multiplier: float

    def covers(self, whole_years: int) -> bool:
        return self.start_age <= whole_years <= self.end_age


def _default_stability() -> Dict[Trait, float]:
    return {
        Trait.EXTRAVERSION: 0.85,
        Trait.OPENNESS: 0.80,
        Trait.HONESTY_HUMILITY: 0.75,
        Trait.CONSCIENTIOUSNESS: 0.70,
        Trait.AGREEABLENESS: 0.65,
        Trait.NEUROTICISM: 0.60,
    }


def _default_sensitive_periods() -> Dict[Trait, SensitivePeriod]:
    return {
        Trait.NEUROTICISM: SensitivePeriod(12, 25, 1.4),
        Trait.CONSCIENTIOUSNESS: SensitivePeriod(18, 35, 1.2),
        Trait.AGREEABLENESS: SensitivePeriod(25, 40, 1.2),
        Trait.EXTRAVERSION: SensitivePeriod(13, 22, 1.2),
        Trait.OPENNESS: SensitivePeriod(15, 30, 1.2),
        Trait.HONESTY_HUMILITY: SensitivePeriod(18, 30, 1.2),
    }


def _default_stage_plasticity() -> Dict[LifeStage, float]:
    return {
        LifeStage.CHILD: 2.0,
        LifeStage.ADOLESCENT: 1.5,
        LifeStage.YOUNG_ADULT: 1.2,
        LifeStage.ADULT: 1.0,
        LifeStage.MATURE_ADULT: 0.9,
        LifeStage.ELDER: 0.8,
    }


@dataclass(frozen=True)
class ParameterTables:
    """
    Every constant the formative and crystallization mechanics read.

    age_plasticity_bands: (last whole year of band, multiplier), ascending;
    ages past the last band use `elder_plasticity`.
    life_stage_bands: (last whole year of stage, stage), ascending; later
    ages are ELDER.
    """
    trait_stability: Dict[Trait, float] = field(default_factory=_default_stability)
    sensitive_periods: Dict[Trait, SensitivePeriod] = field(default_factory=_default_sensitive_periods)
    age_plasticity_bands: Tuple[Tuple[int, float], ...] = (
        (17, 1.3),
        (29, 1.0),
        (49, 0.8),
        (69, 0.7),
    )
    elder_plasticity: float = 0.6
    unknown_age_plasticity: float = 1.0
    single_event_cap: float = 0.30
    lifetime_cap: float = 1.0
    severe_threshold: float = 0.20
    settling_retention: float = 0.70
    settling_duration_days: float = 180.0
    settling_half_lives_per_duration: float = 10.0
    stage_plasticity: Dict[LifeStage, float] = field(default_factory=_default_stage_plasticity)
    life_stage_bands: Tuple[Tuple[int, LifeStage], ...] = (
        (12, LifeStage.CHILD),
        (17, LifeStage.ADOLESCENT),
        (30, LifeStage.YOUNG_ADULT),
        (55, LifeStage.ADULT),
        (70, LifeStage.MATURE_ADULT),
    )
    relationship_stage_plasticity: float = 1.0

    def __post_init__(self):
        missing = [t.value for t in Trait if t not in self.trait_stability]
        if missing:
            raise ValueError(f"trait_stability is missing {missing}")
        if not 0.0 < self.single_event_cap <= self.lifetime_cap:
            raise ValueError("single_event_cap must be positive and within lifetime_cap")
        if not 0.0 < self.settling_retention <= 1.0:
            raise ValueError("settling_retention must be within (0, 1]")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def age_plasticity(self, age_years: Optional[float]) -> float:
        if age_years is None:
            return self.unknown_age_plasticity
        whole = _whole_years(age_years)
        for last_year, multiplier in self.age_plasticity_bands:
            if whole <= last_year:
                return multiplier
        return self.elder_plasticity

    def stability(self, trait: Trait) -> float:
        return self.trait_stability[trait]

    def sensitive_period_modifier(self, trait: Trait, age_years: Optional[float]) -> float:
        if age_years is None:
            return 1.0
        period = self.sensitive_periods.get(trait)
        if period is None or not period.covers(_whole_years(age_years)):
            return 1.0
        return period.multiplier

    def saturation(self, cumulative: float) -> float:
        return max(0.0, 1.0 - cumulative / self.lifetime_cap)

    def life_stage(self, age_years: float) -> LifeStage:
        whole = _whole_years(age_years)
        for last_year, stage in self.life_stage_bands:
            if whole <= last_year:
                return stage
        return LifeStage.ELDER

    def plasticity_for_stage(self, stage: Optional[LifeStage]) -> float:
        if stage is None:
            return self.relationship_stage_plasticity
        return self.stage_plasticity[stage]


def _whole_years(age_years: float) -> int:
    return max(0, int(math.floor(age_years)))


DEFAULT_TABLES = ParameterTables()
