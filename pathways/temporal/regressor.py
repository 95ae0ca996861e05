"""
Backward Regressor
==================

Recovers an earlier state from an anchor by undoing forward steps in
reverse order. Per step, the exact inverse of the projector:

  (a) un-crystallize, using the ledger where it is complete
  (b) subtract event deltas and drop the event's Base Shift Records
  (c) invert decay / need growth across the interval, then release the
      crystallization exposure the interval accrued

Records the anchor does not carry are rebuilt once, before stepping, in
the order a forward pass would have created them, so each sees the same
prior ledger (and therefore the same saturation) it would have seen.

INEXACTNESS:
============
The result is always the bound-consistent algebraic inverse. It is flagged
APPROXIMATE, with one Approximation per cause and dimension, when:
- a checkpoint had a raw value beyond a bound (VALUE_CLAMPED)
- an undone Base Shift Record had a cap engaged (SHIFT_BOUNDED)
- exposure walk-back went negative where the ledger is incomplete
  (CRYSTALLIZATION_HISTORY_UNKNOWN)
- the inverse decay factor hit its exponent limit (DECAY_INVERSE_LIMITED)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..contracts.base import Timestamp
from ..contracts.dimensions import Dimension, Trait, TRAIT_DIMENSIONS
from ..contracts.events import EventEffect
from ..contracts.state import (
    Anchor, StateSnapshot, BaseShiftRecord, Approximation, ApproximationCause,
)
from ..core.crystallization import CrystallizationAccumulator
from ..core.decay import evolve_backward, held_exposure, DEFAULT_INVERSE_EXPONENT_LIMIT
from ..core.formative import FormativeCalculator
from ..core.species import EntityModelConfig
from .stepping import WorkingState
from .timeline import Timeline, Checkpoint


@dataclass(frozen=True)
class RegressionOutcome:
    snapshot: StateSnapshot
    approximations: Tuple[Approximation, ...]
    active_shift_records: Tuple[BaseShiftRecord, ...]
    clamped: Tuple[Dimension, ...]
    checkpoints_processed: int

    @property
    def exact(self) -> bool:
        return not self.approximations


class _Flags:
    """Collects approximations, one per (dimension, cause), first occurrence wins."""

    def __init__(self):
        self._seen: Dict[Tuple[Dimension, ApproximationCause], Approximation] = {}

    def add(self, dimension: Dimension, cause: ApproximationCause, at: Timestamp) -> None:
        key = (dimension, cause)
        if key not in self._seen:
            self._seen[key] = Approximation(dimension=dimension, cause=cause, at=at)

    def collected(self) -> Tuple[Approximation, ...]:
        return tuple(self._seen.values())


class BackwardRegressor:
    def __init__(
        self,
        model: EntityModelConfig,
        formative: FormativeCalculator,
        crystallizer: CrystallizationAccumulator,
        tolerance: float = 1e-9,
        exponent_limit: float = DEFAULT_INVERSE_EXPONENT_LIMIT,
    ):
        self._model = model
        self._formative = formative
        self._crystallizer = crystallizer
        self._tolerance = tolerance
        self._exponent_limit = exponent_limit

    def regress(self, anchor: Anchor, timeline: Timeline) -> RegressionOutcome:
        state = WorkingState.from_anchor(self._model, anchor)
        flags = _Flags()
        clamped = set()
        pending = self._window_shift_records(state, timeline)

        for index, checkpoint in enumerate(timeline.steps):
            for dimension in state.clamped_dimensions(self._tolerance):
                flags.add(dimension, ApproximationCause.VALUE_CLAMPED, state.time)
                clamped.add(dimension)
            earlier = timeline.interval_start(index)
            internal_days = self._model.internal_days(checkpoint.timestamp.days_since(earlier))
            # backward steps visit events latest first
            records = pending.pop() if checkpoint.event is not None else ()
            self.step(
                state,
                checkpoint,
                earlier,
                internal_days,
                known_zone=timeline.ledger_complete_at(checkpoint, anchor.history_start),
                records=records,
                flags=flags,
            )

        for dimension in state.clamped_dimensions(self._tolerance):
            flags.add(dimension, ApproximationCause.VALUE_CLAMPED, state.time)
            clamped.add(dimension)

        return RegressionOutcome(
            snapshot=state.to_snapshot(anchor.history_start),
            approximations=flags.collected(),
            active_shift_records=state.active_records(),
            clamped=tuple(sorted(clamped)),
            checkpoints_processed=len(timeline.steps),
        )

    def step(
        self,
        state: WorkingState,
        checkpoint: Checkpoint,
        earlier: Timestamp,
        internal_days: float,
        known_zone: bool,
        records: Sequence[BaseShiftRecord],
        flags: _Flags,
    ) -> None:
        model = self._model
        t = checkpoint.timestamp

        # (a) un-crystallize
        for dimension in state.dimensions:
            spec = model.specs[dimension]
            if not spec.crystallizes:
                continue
            record = state.take_crystallization(t, dimension, checkpoint.event_id) if known_zone else None
            result = self._crystallizer.unconvert(
                spec.crystallization,
                exposure=state.exposure.get(dimension, 0.0),
                delta=state.deltas[dimension],
                converted=record.amount if record is not None else None,
            )
            state.exposure[dimension] = result.exposure
            state.deltas[dimension] = result.delta
            state.intrinsic[dimension] += result.base_adjustment

        # (b) un-apply event
        event = checkpoint.event
        if event is not None:
            for dimension, value in event.deltas:
                state.deltas[dimension] -= value
            for record in records:
                state.drop_shift_record(record)
                if record.bounded:
                    flags.add(TRAIT_DIMENSIONS[record.trait], ApproximationCause.SHIFT_BOUNDED, t)

        # (c) invert passive evolution, then give back the exposure the
        # interval's delta accrued
        plasticity = model.stage_plasticity_at(t)
        for dimension in state.dimensions:
            spec = model.specs[dimension]
            current = state.current_value_for_delta(dimension)
            delta, limited = evolve_backward(current, spec.kind, internal_days, self._exponent_limit)
            state.deltas[dimension] = delta
            if limited:
                flags.add(dimension, ApproximationCause.DECAY_INVERSE_LIMITED, t)
            if not spec.crystallizes:
                continue
            released = self._crystallizer.release(
                exposure=state.exposure.get(dimension, 0.0),
                held=held_exposure(current, spec.kind, delta, current.delta, internal_days),
                stage_plasticity=plasticity,
                known_zone=known_zone,
            )
            state.exposure[dimension] = released.exposure
            if released.history_unknown:
                flags.add(dimension, ApproximationCause.CRYSTALLIZATION_HISTORY_UNKNOWN, t)
        state.time = earlier

    def _window_shift_records(
        self, state: WorkingState, timeline: Timeline
    ) -> List[Tuple[BaseShiftRecord, ...]]:
        """
        Base Shift Records of every event in the window, one tuple per event
        in chronological order.

        Records the anchor carries are used as they are. Missing ones are
        rebuilt oldest first against the ledger a forward pass from the query
        time would hold: the anchor's records up to the query time, then every
        window record before them. Rebuilt records are adopted into the
        working ledger so they can be dropped like carried ones.
        """
        pool = list(state.shift_records)
        carried: List[List[Optional[BaseShiftRecord]]] = []
        for event in timeline.events:
            carried.append([
                _take_matching(pool, event, request.trait)
                for request in event.base_shift_requests
            ])

        prior = [r for r in pool if r.timestamp <= timeline.query_time]
        baked_in_at = state.time
        window: List[Tuple[BaseShiftRecord, ...]] = []
        for event, found in zip(timeline.events, carried):
            age = self._model.age_at(event.timestamp)
            records = []
            for request, record in zip(event.base_shift_requests, found):
                if record is None:
                    record = self._formative.compute(
                        event_id=event.event_id,
                        timestamp=event.timestamp,
                        trait=request.trait,
                        requested=request.magnitude,
                        age_years=age,
                        prior=prior,
                        time_scale=self._model.time_scale,
                    )
                    state.adopt_shift_record(record, baked_in_at)
                prior.append(record)
                records.append(record)
            window.append(tuple(records))
        return window


def _take_matching(pool: List[BaseShiftRecord], event: EventEffect, trait: Trait) -> Optional[BaseShiftRecord]:
    for index, record in enumerate(pool):
        if record.event_id == event.event_id and record.timestamp == event.timestamp and record.trait == trait:
            del pool[index]
            return record
    return None
