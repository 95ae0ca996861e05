"""
Forward Projector
=================

Evolves an anchor forward through a timeline.

Per step, in this order:
  (a) decay / need growth across the interval ending at the checkpoint,
      measuring the delta each crystallizing dimension held through it
  (b) event deltas, then Base Shift Records for the event's shift requests
  (c) one crystallization step per crystallizing dimension
  (d) effective values; dimensions sitting outside their bounds are noted

The regressor undoes exactly these steps in reverse, so the two must stay
in lockstep.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Set, Tuple

from ..contracts.dimensions import Dimension
from ..contracts.state import Anchor, StateSnapshot, BaseShiftRecord, CrystallizationRecord
from ..core.crystallization import CrystallizationAccumulator
from ..core.decay import evolve_forward, held_exposure
from ..core.formative import FormativeCalculator
from ..core.species import EntityModelConfig
from .stepping import WorkingState
from .timeline import Timeline, Checkpoint


@dataclass(frozen=True)
class ProjectionOutcome:
    snapshot: StateSnapshot
    active_shift_records: Tuple[BaseShiftRecord, ...]
    clamped: Tuple[Dimension, ...]
    checkpoints_processed: int


class ForwardProjector:
    def __init__(
        self,
        model: EntityModelConfig,
        formative: FormativeCalculator,
        crystallizer: CrystallizationAccumulator,
        tolerance: float = 1e-9,
    ):
        self._model = model
        self._formative = formative
        self._crystallizer = crystallizer
        self._tolerance = tolerance

    def project(self, anchor: Anchor, timeline: Timeline) -> ProjectionOutcome:
        state = WorkingState.from_anchor(self._model, anchor)
        clamped: Set[Dimension] = set(state.clamped_dimensions(self._tolerance))

        for index, checkpoint in enumerate(timeline.steps):
            start = timeline.interval_start(index)
            internal_days = self._model.internal_days(checkpoint.timestamp.days_since(start))
            self.step(state, checkpoint, internal_days)
            clamped.update(state.clamped_dimensions(self._tolerance))

        return ProjectionOutcome(
            snapshot=state.to_snapshot(anchor.history_start),
            active_shift_records=state.active_records(),
            clamped=tuple(sorted(clamped)),
            checkpoints_processed=len(timeline.steps),
        )

    def step(self, state: WorkingState, checkpoint: Checkpoint, internal_days: float) -> None:
        model = self._model
        t = checkpoint.timestamp

        # (a) passive evolution; crystallizing dimensions also measure the
        # delta they held across the interval
        held: Dict[Dimension, float] = {}
        for dimension in state.dimensions:
            spec = model.specs[dimension]
            current = state.current_value_for_delta(dimension)
            evolved = evolve_forward(current, spec.kind, internal_days)
            if spec.crystallizes:
                held[dimension] = held_exposure(
                    current, spec.kind, current.delta, evolved, internal_days
                )
            state.deltas[dimension] = evolved
        state.time = t

        # (b) event
        event = checkpoint.event
        if event is not None:
            for dimension, value in event.deltas:
                state.deltas[dimension] += value
            age = model.age_at(t)
            for request in event.base_shift_requests:
                record = self._formative.compute(
                    event_id=event.event_id,
                    timestamp=t,
                    trait=request.trait,
                    requested=request.magnitude,
                    age_years=age,
                    prior=state.shift_records,
                    time_scale=model.time_scale,
                )
                state.shift_records.append(record)

        # (c) crystallization
        plasticity = model.stage_plasticity_at(t)
        for dimension, area in held.items():
            result = self._crystallizer.forward(
                model.specs[dimension].crystallization,
                exposure=state.exposure.get(dimension, 0.0),
                held=area,
                delta=state.deltas[dimension],
                stage_plasticity=plasticity,
            )
            state.exposure[dimension] = result.exposure
            if result.converted is not None:
                state.intrinsic[dimension] += result.converted
                state.deltas[dimension] -= result.converted
                state.crystallization_records.append(CrystallizationRecord(
                    timestamp=t,
                    dimension=dimension,
                    amount=result.converted,
                    event_id=checkpoint.event_id,
                ))
