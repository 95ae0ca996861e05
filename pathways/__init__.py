"""
Behavioral Pathways Temporal State Engine

This package computes an individual's or a relationship's psychological
state at any instant from one pinned anchor state and a set of
timestamped event effects. Each layer communicates only through explicit
contracts, never through shared mutable state.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Identities, timestamps, dimensions, state values,
     snapshots, event effects, errors
   - Outputs: Immutable types shared by every layer
   - MUST NOT: Contain behavior beyond validation and hashing

2. CORE MECHANICS (core/)
   - Responsibility: Decay / need growth, formative base shifts,
     crystallization, species time scaling, parameter tables
   - Allowed inputs: Contracts
   - MUST NOT: Order events, hold timelines, read the clock

3. TEMPORAL COMPUTATION (temporal/)
   - Responsibility: Timeline assembly, forward projection, backward
     regression, direction dispatch
   - Allowed inputs: Anchor, events, query timestamp, entity model
   - Outputs: ComputedState (immutable)
   - MUST NOT: Cache results between calls

4. REGISTRY (registry/)
   - Responsibility: Entities, relationships, single anchors, event lists,
     reader/writer locking per timeline
   - MUST NOT: Compute state itself

5. ANALYSIS (analysis/)
   - Responsibility: Read-only derived views (risk factors, trajectories)
   - MUST NOT: Feed anything back into the core

6. OBSERVABILITY (observability/)
   - Responsibility: Audit log and metrics
   - MUST NOT: Modify system behavior

CONSTRAINTS ENFORCED:
=====================
- Deterministic: identical inputs always produce identical outputs
- No randomness and no wall-clock reads anywhere in the computation
- Explicit errors: configuration, anchor and input-range violations raise
  typed exceptions carrying an Error value
- Inexact regression is reported as a result field, never an exception
"""

from .contracts import (
    EntityId, RelationshipId, Timestamp, Dimension, Trait, StateValue,
    StateSnapshot, Anchor, EventEffect, ComputedState, QueryDirection,
    RegressionQuality, ApproximationCause,
    PathwaysError, ConfigurationError, AnchorViolationError, OutOfRangeInputError,
)
from .core import EntityModelConfig, Species, SpeciesProfile, ParameterTables, DEFAULT_TABLES
from .temporal import StateQueryEngine, EngineConfig, EventBoundary
from .registry import Simulation, RelationshipState

__version__ = "0.1.0"

__all__ = [
    'EntityId', 'RelationshipId', 'Timestamp', 'Dimension', 'Trait', 'StateValue',
    'StateSnapshot', 'Anchor', 'EventEffect', 'ComputedState', 'QueryDirection',
    'RegressionQuality', 'ApproximationCause',
    'PathwaysError', 'ConfigurationError', 'AnchorViolationError', 'OutOfRangeInputError',
    'EntityModelConfig', 'Species', 'SpeciesProfile', 'ParameterTables', 'DEFAULT_TABLES',
    'StateQueryEngine', 'EngineConfig', 'EventBoundary',
    'Simulation', 'RelationshipState',
]
