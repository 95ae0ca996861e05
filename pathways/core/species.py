"""
Species Profiles and Entity Model Configuration
===============================================

Resolves which dimensions an entity carries, with which parameters, and
how fast its internal clock runs relative to real time.

TIME SCALE:
===========
time_scale = HUMAN_LIFESPAN_YEARS / species lifespan. Every elapsed real
duration is multiplied by time_scale before any half-life, growth rate,
settling half-life or exposure increment sees it. Ages are reported in
human-equivalent years (real years x time_scale).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, FrozenSet, Optional
from enum import Enum

from ..contracts.base import Timestamp, Error, ErrorCode, ConfigurationError
from ..contracts.dimensions import (
    Dimension, DimensionFamily, DimensionKind, DimensionSpec, CrystallizationSpec,
    Trait, DEFAULT_DIMENSION_SPECS, TRAIT_DIMENSIONS, dimensions_in,
)
from ..contracts.state import StateValue, StateSnapshot, LifeStage
from ..contracts.events import EventEffect
from .tables import ParameterTables, DEFAULT_TABLES, HUMAN_LIFESPAN_YEARS


DAYS_PER_YEAR = 365.25

INDIVIDUAL_DIMENSIONS = dimensions_in(
    DimensionFamily.MOOD,
    DimensionFamily.NEEDS,
    DimensionFamily.SOCIAL_COGNITION,
    DimensionFamily.MENTAL_HEALTH,
    DimensionFamily.DISPOSITION,
    DimensionFamily.PERSONALITY,
)
ANIMAL_DIMENSIONS = dimensions_in(
    DimensionFamily.MOOD,
    DimensionFamily.NEEDS,
    DimensionFamily.DISPOSITION,
    DimensionFamily.PERSONALITY,
)
SOCIAL_ANIMAL_DIMENSIONS = ANIMAL_DIMENSIONS | dimensions_in(DimensionFamily.SOCIAL_COGNITION)
RELATIONSHIP_DIMENSIONS = dimensions_in(DimensionFamily.RELATIONSHIP)

# Species at or above this social complexity also model social cognition.
SOCIAL_COGNITION_THRESHOLD = 0.7


@dataclass(frozen=True)
class SpeciesProfile:
    name: str
    lifespan_years: float
    maturity_age_years: float
    social_complexity: float
    active_dimensions: FrozenSet[Dimension]

    def __post_init__(self):
        if self.lifespan_years <= 0:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message=f"Species {self.name} needs a positive lifespan",
            ))
        if not 0.0 <= self.social_complexity <= 1.0:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message=f"Species {self.name} social_complexity must be within [0, 1]",
            ))

    @property
    def time_scale(self) -> float:
        return HUMAN_LIFESPAN_YEARS / self.lifespan_years

    @staticmethod
    def custom(
        name: str,
        lifespan_years: float,
        maturity_age_years: float,
        social_complexity: float,
        active_dimensions: Optional[FrozenSet[Dimension]] = None,
    ) -> SpeciesProfile:
        if active_dimensions is None:
            active_dimensions = (
                SOCIAL_ANIMAL_DIMENSIONS
                if social_complexity >= SOCIAL_COGNITION_THRESHOLD
                else ANIMAL_DIMENSIONS
            )
        return SpeciesProfile(
            name=name,
            lifespan_years=lifespan_years,
            maturity_age_years=maturity_age_years,
            social_complexity=social_complexity,
            active_dimensions=frozenset(active_dimensions),
        )


class Species(Enum):
    HUMAN = "human"
    DOG = "dog"
    CAT = "cat"
    DOLPHIN = "dolphin"
    HORSE = "horse"
    ELEPHANT = "elephant"
    CHIMPANZEE = "chimpanzee"
    CROW = "crow"
    MOUSE = "mouse"

    @property
    def profile(self) -> SpeciesProfile:
        return SPECIES_PROFILES[self]


SPECIES_PROFILES: Dict[Species, SpeciesProfile] = {
    Species.HUMAN: SpeciesProfile("human", 80, 25, 1.0, INDIVIDUAL_DIMENSIONS),
    Species.DOG: SpeciesProfile.custom("dog", 12, 2, 0.7),
    Species.CAT: SpeciesProfile.custom("cat", 15, 1, 0.3),
    Species.DOLPHIN: SpeciesProfile.custom("dolphin", 50, 8, 0.9),
    Species.HORSE: SpeciesProfile.custom("horse", 30, 4, 0.5),
    Species.ELEPHANT: SpeciesProfile.custom("elephant", 70, 15, 0.9),
    Species.CHIMPANZEE: SpeciesProfile.custom("chimpanzee", 50, 13, 0.9),
    Species.CROW: SpeciesProfile.custom("crow", 15, 2, 0.7),
    Species.MOUSE: SpeciesProfile.custom("mouse", 2, 0, 0.1),
}


@dataclass(frozen=True)
class DimensionOverride:
    """Per-entity replacement of selected DimensionSpec parameters."""
    half_life_days: Optional[float] = None
    growth_rate_per_day: Optional[float] = None
    min_bound: Optional[float] = None
    max_bound: Optional[float] = None
    crystallization: Optional[CrystallizationSpec] = None
    default_base: Optional[float] = None

    def apply(self, spec: DimensionSpec) -> DimensionSpec:
        return DimensionSpec(
            dimension=spec.dimension,
            family=spec.family,
            kind=spec.kind,
            default_base=spec.default_base if self.default_base is None else self.default_base,
            min_bound=spec.min_bound if self.min_bound is None else self.min_bound,
            max_bound=spec.max_bound if self.max_bound is None else self.max_bound,
            half_life_days=spec.half_life_days if self.half_life_days is None else self.half_life_days,
            growth_rate_per_day=(
                spec.growth_rate_per_day if self.growth_rate_per_day is None else self.growth_rate_per_day
            ),
            crystallization=spec.crystallization if self.crystallization is None else self.crystallization,
            trait=spec.trait,
        )


@dataclass(frozen=True)
class EntityModelConfig:
    """
    Resolved model for one timeline (an entity or a relationship).

    Built once at configuration time. Every dimension or trait referenced by
    an anchor or an event is checked against `specs` here, so projection and
    regression never meet an unknown dimension.
    """
    specs: Dict[Dimension, DimensionSpec]
    time_scale: float = 1.0
    birth: Optional[Timestamp] = None
    tables: ParameterTables = DEFAULT_TABLES
    is_relationship: bool = False
    name: str = "human"

    def __post_init__(self):
        if self.time_scale <= 0.0:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message="time_scale must be positive",
            ))

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @staticmethod
    def for_species(
        species: SpeciesProfile,
        birth: Optional[Timestamp] = None,
        tables: ParameterTables = DEFAULT_TABLES,
        overrides: Optional[Dict[Dimension, DimensionOverride]] = None,
    ) -> EntityModelConfig:
        specs = _resolve_specs(species.active_dimensions, overrides, species.name)
        return EntityModelConfig(
            specs=specs,
            time_scale=species.time_scale,
            birth=birth,
            tables=tables,
            name=species.name,
        )

    @staticmethod
    def for_relationship(
        time_scale: float,
        tables: ParameterTables = DEFAULT_TABLES,
        overrides: Optional[Dict[Dimension, DimensionOverride]] = None,
    ) -> EntityModelConfig:
        specs = _resolve_specs(RELATIONSHIP_DIMENSIONS, overrides, "relationship")
        return EntityModelConfig(
            specs=specs,
            time_scale=time_scale,
            tables=tables,
            is_relationship=True,
            name="relationship",
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def active_dimensions(self) -> FrozenSet[Dimension]:
        return frozenset(self.specs)

    def spec(self, dimension: Dimension) -> DimensionSpec:
        spec = self.specs.get(dimension)
        if spec is None:
            raise ConfigurationError(Error(
                code=ErrorCode.DIMENSION_NOT_ACTIVE,
                message=f"Dimension {dimension.value} is not active for {self.name}",
                context=(("dimension", dimension.value), ("model", self.name)),
            ))
        return spec

    def trait_dimension(self, trait: Trait) -> Dimension:
        dimension = TRAIT_DIMENSIONS[trait]
        if dimension not in self.specs:
            raise ConfigurationError(Error(
                code=ErrorCode.TRAIT_NOT_ACTIVE,
                message=f"Trait {trait.value} is not active for {self.name}",
                context=(("trait", trait.value), ("model", self.name)),
            ))
        return dimension

    def internal_days(self, real_days: float) -> float:
        return real_days * self.time_scale

    def age_at(self, t: Timestamp) -> Optional[float]:
        """Human-equivalent age in years, or None when unknown."""
        if self.is_relationship or self.birth is None:
            return None
        real_years = t.days_since(self.birth) / DAYS_PER_YEAR
        return max(0.0, real_years) * self.time_scale

    def life_stage_at(self, t: Timestamp) -> Optional[LifeStage]:
        age = self.age_at(t)
        if age is None:
            return None
        return self.tables.life_stage(age)

    def stage_plasticity_at(self, t: Timestamp) -> float:
        if self.is_relationship:
            return self.tables.relationship_stage_plasticity
        stage = self.life_stage_at(t)
        if stage is None:
            return self.tables.plasticity_for_stage(LifeStage.ADULT)
        return self.tables.plasticity_for_stage(stage)

    # -------------------------------------------------------------------------
    # Validation and defaults
    # -------------------------------------------------------------------------

    def validate_event(self, event: EventEffect) -> None:
        for dimension in event.touched_dimensions:
            self.spec(dimension)
        for trait in event.shifted_traits:
            self.trait_dimension(trait)

    def validate_snapshot(self, snapshot: StateSnapshot) -> None:
        present = set(snapshot.dimensions)
        for dimension in present:
            self.spec(dimension)
        missing = sorted(d.value for d in self.specs if d not in present)
        if missing:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message=f"Snapshot is missing active dimensions: {', '.join(missing)}",
                at=snapshot.timestamp,
            ))
        for record in snapshot.shift_records:
            self.trait_dimension(record.trait)
        for record in snapshot.crystallization_records:
            self.spec(record.dimension)

    def initial_value(self, dimension: Dimension, base: Optional[float] = None, delta: float = 0.0) -> StateValue:
        spec = self.spec(dimension)
        half_life = timedelta(days=spec.half_life_days) if spec.half_life_days else None
        return StateValue(
            base=spec.default_base if base is None else base,
            delta=delta,
            min_bound=spec.min_bound,
            max_bound=spec.max_bound,
            decay_half_life=half_life,
            growth_rate=spec.growth_rate_per_day if spec.kind is DimensionKind.NEED else 0.0,
        )

    def initial_snapshot(
        self,
        timestamp: Timestamp,
        bases: Optional[Dict[Dimension, float]] = None,
        deltas: Optional[Dict[Dimension, float]] = None,
    ) -> StateSnapshot:
        """An authored snapshot: defaults for every active dimension, with overrides."""
        bases = bases or {}
        deltas = deltas or {}
        for dimension in list(bases) + list(deltas):
            self.spec(dimension)
        values = {
            dimension: self.initial_value(
                dimension,
                base=bases.get(dimension),
                delta=deltas.get(dimension, 0.0),
            )
            for dimension in self.specs
        }
        return StateSnapshot.create(timestamp=timestamp, values=values)


def _resolve_specs(
    active: FrozenSet[Dimension],
    overrides: Optional[Dict[Dimension, DimensionOverride]],
    name: str,
) -> Dict[Dimension, DimensionSpec]:
    overrides = overrides or {}
    for dimension in overrides:
        if dimension not in active:
            raise ConfigurationError(Error(
                code=ErrorCode.DIMENSION_NOT_ACTIVE,
                message=f"Override for inactive dimension {dimension.value} on {name}",
                context=(("dimension", dimension.value),),
            ))
    specs: Dict[Dimension, DimensionSpec] = {}
    for dimension in sorted(active):
        spec = DEFAULT_DIMENSION_SPECS[dimension]
        if dimension in overrides:
            try:
                spec = overrides[dimension].apply(spec)
            except ValueError as exc:
                raise ConfigurationError(Error(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message=str(exc),
                    context=(("dimension", dimension.value),),
                )) from exc
        specs[dimension] = spec
    return specs
