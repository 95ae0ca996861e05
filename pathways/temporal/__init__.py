"""
Temporal Computation Layer
==========================

Computes state at an arbitrary instant from one anchor and a set of events.

INVARIANTS:
- The anchor is the only authority; all other states are derived
- Same anchor + same events + same query = same state (deterministic)
- Forward projection followed by backward regression restores the anchor
  whenever no bound was hit

Modules:
- timeline: event selection, ordering and boundary policy
- stepping: working state shared by both directions
- projector: forward projection
- regressor: backward regression with exactness reporting
- engine: direction dispatch and configuration
"""

from .timeline import EventBoundary, Checkpoint, Timeline, assemble, select_events
from .projector import ForwardProjector, ProjectionOutcome
from .regressor import BackwardRegressor, RegressionOutcome
from .engine import StateQueryEngine, EngineConfig

__all__ = [
    'EventBoundary',
    'Checkpoint',
    'Timeline',
    'assemble',
    'select_events',
    'ForwardProjector',
    'ProjectionOutcome',
    'BackwardRegressor',
    'RegressionOutcome',
    'StateQueryEngine',
    'EngineConfig',
]
