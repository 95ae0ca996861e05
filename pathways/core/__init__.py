"""
Core State Mechanics

RESPONSIBILITY: The three mutation mechanisms and their parameters
ALLOWED INPUTS: Contracts only
OUTPUTS: New values and immutable ledger records

WHAT THIS LAYER MUST NOT DO:
============================
- Order events or decide which events apply (temporal layer)
- Hold timelines, anchors or locks (registry)
- Read the wall clock or any global mutable state

Modules:
- tables: immutable parameter tables (DEFAULT_TABLES)
- species: species profiles, time scale and resolved entity model
- decay: decay / need growth laws and their inverses
- formative: formative modifier calculator (Base Shift Records)
- crystallization: sustained-exposure accumulator and its inverse
"""

from .tables import ParameterTables, SensitivePeriod, DEFAULT_TABLES, HUMAN_LIFESPAN_YEARS
from .species import (
    Species, SpeciesProfile, SPECIES_PROFILES, EntityModelConfig, DimensionOverride,
    INDIVIDUAL_DIMENSIONS, RELATIONSHIP_DIMENSIONS,
)
from .formative import FormativeCalculator
from .crystallization import CrystallizationAccumulator

__all__ = [
    'ParameterTables',
    'SensitivePeriod',
    'DEFAULT_TABLES',
    'HUMAN_LIFESPAN_YEARS',
    'Species',
    'SpeciesProfile',
    'SPECIES_PROFILES',
    'EntityModelConfig',
    'DimensionOverride',
    'INDIVIDUAL_DIMENSIONS',
    'RELATIONSHIP_DIMENSIONS',
    'FormativeCalculator',
    'CrystallizationAccumulator',
]
