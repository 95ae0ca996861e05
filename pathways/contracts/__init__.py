"""
Contracts Module

Explicit, immutable types shared by every layer. Core, temporal, registry
and analysis code communicate only through these contracts.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Errors are data and carry an explicit ErrorCode
3. All timestamps are UTC and supplied by the caller, never the wall clock
4. Hash-based identity for events, relationships and snapshots
"""

from .base import (
    ErrorCode, Error, PathwaysError, ConfigurationError, AnchorViolationError,
    OutOfRangeInputError, EntityId, RelationshipId, Timestamp, TimeRange,
)
from .dimensions import (
    Dimension, DimensionKind, DimensionFamily, DimensionSpec, CrystallizationSpec,
    Trait, DEFAULT_DIMENSION_SPECS, TRAIT_DIMENSIONS, dimensions_in,
)
from .state import (
    StateValue, BaseShiftRecord, CrystallizationRecord, StateSnapshot, Anchor,
    QueryDirection, RegressionQuality, ApproximationCause, Approximation,
    LifeStage, ComputedState,
)
from .events import EventEffect, BaseShiftRequest

__all__ = [
    'ErrorCode', 'Error', 'PathwaysError', 'ConfigurationError',
    'AnchorViolationError', 'OutOfRangeInputError', 'EntityId', 'RelationshipId',
    'Timestamp', 'TimeRange',
    'Dimension', 'DimensionKind', 'DimensionFamily', 'DimensionSpec',
    'CrystallizationSpec', 'Trait', 'DEFAULT_DIMENSION_SPECS', 'TRAIT_DIMENSIONS',
    'dimensions_in',
    'StateValue', 'BaseShiftRecord', 'CrystallizationRecord', 'StateSnapshot',
    'Anchor', 'QueryDirection', 'RegressionQuality', 'ApproximationCause',
    'Approximation', 'LifeStage', 'ComputedState',
    'EventEffect', 'BaseShiftRequest',
]
