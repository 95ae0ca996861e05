"""
Dimension Registry
==================

Tagged-variant registry of every scalar dimension the engine can evolve.

WHY A REGISTRY, NOT FIELDS:
Species activate different dimension sets. A dimension is identified by a
`Dimension` tag and described by a `DimensionSpec`; the active set for an
entity is resolved against a per-species table at configuration time
(see `pathways.core.species`), never by specialising a state class.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional
from enum import Enum


class DimensionKind(Enum):
    """How the delta of a dimension evolves between checkpoints."""
    DECAYING = "decaying"      # exponential return toward zero over a half-life
    NEED = "need"              # grows linearly until satisfied by events
    PERMANENT = "permanent"    # never decays (history, acquired capability)


class DimensionFamily(Enum):
    MOOD = "mood"
    NEEDS = "needs"
    SOCIAL_COGNITION = "social_cognition"
    MENTAL_HEALTH = "mental_health"
    DISPOSITION = "disposition"
    PERSONALITY = "personality"
    RELATIONSHIP = "relationship"


class Trait(Enum):
    """HEXACO personality traits; targets of formative base shifts."""
    HONESTY_HUMILITY = "honesty_humility"
    NEUROTICISM = "neuroticism"
    EXTRAVERSION = "extraversion"
    AGREEABLENESS = "agreeableness"
    CONSCIENTIOUSNESS = "conscientiousness"
    OPENNESS = "openness"


class Dimension(Enum):
    # Mood (PAD)
    VALENCE = "mood.valence"
    AROUSAL = "mood.arousal"
    DOMINANCE = "mood.dominance"

    # Needs
    FATIGUE = "needs.fatigue"
    STRESS = "needs.stress"
    PURPOSE = "needs.purpose"

    # Social cognition
    LONELINESS = "social.loneliness"
    PERCEIVED_RECIPROCAL_CARING = "social.perceived_reciprocal_caring"
    PERCEIVED_LIABILITY = "social.perceived_liability"
    SELF_HATE = "social.self_hate"
    PERCEIVED_COMPETENCE = "social.perceived_competence"

    # Mental health
    DEPRESSION = "mental_health.depression"
    SELF_WORTH = "mental_health.self_worth"
    HOPELESSNESS = "mental_health.hopelessness"
    INTERPERSONAL_HOPELESSNESS = "mental_health.interpersonal_hopelessness"
    ACQUIRED_CAPABILITY = "mental_health.acquired_capability"

    # Disposition
    EMPATHY = "disposition.empathy"
    AGGRESSION = "disposition.aggression"
    GRIEVANCE = "disposition.grievance"

    # Personality (HEXACO)
    HONESTY_HUMILITY = "personality.honesty_humility"
    NEUROTICISM = "personality.neuroticism"
    EXTRAVERSION = "personality.extraversion"
    AGREEABLENESS = "personality.agreeableness"
    CONSCIENTIOUSNESS = "personality.conscientiousness"
    OPENNESS = "personality.openness"

    # Relationship (shared by both members)
    TRUST = "relationship.trust"
    WARMTH = "relationship.warmth"
    CONFLICT = "relationship.conflict"
    SHARED_HISTORY = "relationship.shared_history"

    def __lt__(self, other: Dimension) -> bool:
        return self.value < other.value


@dataclass(frozen=True)
class CrystallizationSpec:
    """
    Sustained-exposure ratchet settings for one dimension.

    threshold: exposure (area under |delta| in internal days, times stage
        plasticity) needed before a conversion fires.
    fraction: share of the current delta folded into base per conversion.
    """
    threshold: float
    fraction: float

    def __post_init__(self):
        if self.threshold <= 0.0:
            raise ValueError("crystallization threshold must be positive")
        if not 0.0 < self.fraction < 1.0:
            raise ValueError("crystallization fraction must be within (0, 1)")


@dataclass(frozen=True)
class DimensionSpec:
    """Static description of one dimension (before species overrides)."""
    dimension: Dimension
    family: DimensionFamily
    kind: DimensionKind
    default_base: float
    min_bound: float = 0.0
    max_bound: float = 1.0
    half_life_days: Optional[float] = None
    growth_rate_per_day: float = 0.0
    crystallization: Optional[CrystallizationSpec] = None
    trait: Optional[Trait] = None

    def __post_init__(self):
        if self.min_bound >= self.max_bound:
            raise ValueError(f"{self.dimension.value}: min_bound must be below max_bound")
        if self.kind is DimensionKind.DECAYING and not self.half_life_days:
            raise ValueError(f"{self.dimension.value}: decaying dimensions need a half-life")
        if self.kind is DimensionKind.NEED and self.growth_rate_per_day <= 0.0:
            raise ValueError(f"{self.dimension.value}: needs require a positive growth rate")
        if self.kind is not DimensionKind.DECAYING and self.half_life_days is not None:
            raise ValueError(f"{self.dimension.value}: only decaying dimensions take a half-life")

    @property
    def crystallizes(self) -> bool:
        return self.crystallization is not None


def _decaying(dimension, family, base, half_life_days, lo=0.0, hi=1.0, crystallization=None, trait=None):
    return DimensionSpec(
        dimension=dimension,
        family=family,
        kind=DimensionKind.DECAYING,
        default_base=base,
        min_bound=lo,
        max_bound=hi,
        half_life_days=half_life_days,
        crystallization=crystallization,
        trait=trait,
    )


_SLOW_RATCHET = CrystallizationSpec(threshold=2.0, fraction=0.05)
_BOND_RATCHET = CrystallizationSpec(threshold=4.0, fraction=0.10)

_M = DimensionFamily.MOOD
_N = DimensionFamily.NEEDS
_S = DimensionFamily.SOCIAL_COGNITION
_H = DimensionFamily.MENTAL_HEALTH
_D = DimensionFamily.DISPOSITION
_P = DimensionFamily.PERSONALITY
_R = DimensionFamily.RELATIONSHIP

# Half-lives: mood in hours, social cognition in
# days, clinical dimensions in weeks.
DEFAULT_DIMENSION_SPECS: Dict[Dimension, DimensionSpec] = {
    spec.dimension: spec for spec in (
        _decaying(Dimension.VALENCE, _M, 0.0, 0.25, lo=-1.0),
        _decaying(Dimension.AROUSAL, _M, 0.0, 0.25, lo=-1.0),
        _decaying(Dimension.DOMINANCE, _M, 0.0, 0.25, lo=-1.0),

        DimensionSpec(
            dimension=Dimension.FATIGUE,
            family=_N,
            kind=DimensionKind.NEED,
            default_base=0.2,
            growth_rate_per_day=0.02,
        ),
        _decaying(Dimension.STRESS, _N, 0.2, 0.5),
        _decaying(Dimension.PURPOSE, _N, 0.7, 3.0),

        _decaying(Dimension.LONELINESS, _S, 0.2, 1.0, crystallization=_SLOW_RATCHET),
        _decaying(Dimension.PERCEIVED_RECIPROCAL_CARING, _S, 0.6, 2.0),
        _decaying(Dimension.PERCEIVED_LIABILITY, _S, 0.2, 3.0),
        _decaying(Dimension.SELF_HATE, _S, 0.1, 3.0, crystallization=_SLOW_RATCHET),
        _decaying(Dimension.PERCEIVED_COMPETENCE, _S, 0.6, 3.0),

        _decaying(Dimension.DEPRESSION, _H, 0.1, 7.0, crystallization=_SLOW_RATCHET),
        _decaying(Dimension.SELF_WORTH, _H, 0.6, 3.0),
        _decaying(Dimension.HOPELESSNESS, _H, 0.1, 3.0),
        _decaying(Dimension.INTERPERSONAL_HOPELESSNESS, _H, 0.1, 2.0, crystallization=_SLOW_RATCHET),
        DimensionSpec(
            dimension=Dimension.ACQUIRED_CAPABILITY,
            family=_H,
            kind=DimensionKind.PERMANENT,
            default_base=0.0,
        ),

        _decaying(Dimension.EMPATHY, _D, 0.6, 28.0),
        _decaying(Dimension.AGGRESSION, _D, 0.2, 7.0),
        _decaying(Dimension.GRIEVANCE, _D, 0.1, 7.0, crystallization=_SLOW_RATCHET),

        _decaying(Dimension.HONESTY_HUMILITY, _P, 0.0, 7.0, lo=-1.0, trait=Trait.HONESTY_HUMILITY),
        _decaying(Dimension.NEUROTICISM, _P, 0.0, 7.0, lo=-1.0, trait=Trait.NEUROTICISM),
        _decaying(Dimension.EXTRAVERSION, _P, 0.0, 7.0, lo=-1.0, trait=Trait.EXTRAVERSION),
        _decaying(Dimension.AGREEABLENESS, _P, 0.0, 7.0, lo=-1.0, trait=Trait.AGREEABLENESS),
        _decaying(Dimension.CONSCIENTIOUSNESS, _P, 0.0, 7.0, lo=-1.0, trait=Trait.CONSCIENTIOUSNESS),
        _decaying(Dimension.OPENNESS, _P, 0.0, 7.0, lo=-1.0, trait=Trait.OPENNESS),

        _decaying(Dimension.TRUST, _R, 0.5, 30.0, crystallization=_BOND_RATCHET),
        _decaying(Dimension.WARMTH, _R, 0.5, 14.0, crystallization=_BOND_RATCHET),
        _decaying(Dimension.CONFLICT, _R, 0.1, 3.0),
        DimensionSpec(
            dimension=Dimension.SHARED_HISTORY,
            family=_R,
            kind=DimensionKind.PERMANENT,
            default_base=0.0,
        ),
    )
}

TRAIT_DIMENSIONS: Dict[Trait, Dimension] = {
    spec.trait: spec.dimension
    for spec in DEFAULT_DIMENSION_SPECS.values()
    if spec.trait is not None
}


def dimensions_in(*families: DimensionFamily) -> FrozenSet[Dimension]:
    """All registered dimensions belonging to the given families."""
    return frozenset(
        spec.dimension
        for spec in DEFAULT_DIMENSION_SPECS.values()
        if spec.family in families
    )
