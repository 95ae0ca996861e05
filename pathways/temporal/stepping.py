"""
Working State
=============

Mutable scratch state used by one projection or regression. It is created
from an anchor at the start of a query and discarded at the end; nothing
here outlives a call.

BASE REPRESENTATION:
====================
Each dimension keeps an intrinsic base. For trait dimensions the base at
time t is

    base(t) = intrinsic + sum(record.contribution_at(t) for known records)

so records carried by the anchor keep settling after it, and adding or
dropping a record changes base without touching intrinsic. Crystallization
conversions move intrinsic.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from ..contracts.base import Timestamp
from ..contracts.dimensions import Dimension, TRAIT_DIMENSIONS
from ..contracts.state import (
    Anchor, StateValue, StateSnapshot, BaseShiftRecord, CrystallizationRecord,
)
from ..core.species import EntityModelConfig


class WorkingState:
    def __init__(
        self,
        model: EntityModelConfig,
        time: Timestamp,
        templates: Dict[Dimension, StateValue],
        intrinsic: Dict[Dimension, float],
        deltas: Dict[Dimension, float],
        exposure: Dict[Dimension, float],
        shift_records: List[BaseShiftRecord],
        crystallization_records: List[CrystallizationRecord],
    ):
        self.model = model
        self.time = time
        self._templates = templates
        self.intrinsic = intrinsic
        self.deltas = deltas
        self.exposure = exposure
        self.shift_records = shift_records
        self.crystallization_records = crystallization_records

    @staticmethod
    def from_anchor(model: EntityModelConfig, anchor: Anchor) -> WorkingState:
        snapshot = anchor.snapshot
        values = snapshot.values_by_dimension()
        intrinsic: Dict[Dimension, float] = {}
        for dimension, value in values.items():
            intrinsic[dimension] = value.base
        for record in snapshot.shift_records:
            dimension = TRAIT_DIMENSIONS[record.trait]
            intrinsic[dimension] -= record.contribution_at(snapshot.timestamp)
        return WorkingState(
            model=model,
            time=snapshot.timestamp,
            templates=values,
            intrinsic=intrinsic,
            deltas={d: v.delta for d, v in values.items()},
            exposure=snapshot.exposure_by_dimension(),
            shift_records=list(snapshot.shift_records),
            crystallization_records=list(snapshot.crystallization_records),
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def dimensions(self) -> Tuple[Dimension, ...]:
        return tuple(sorted(self._templates))

    def template(self, dimension: Dimension) -> StateValue:
        return self._templates[dimension]

    def base_at(self, dimension: Dimension, t: Optional[Timestamp] = None) -> float:
        t = t or self.time
        base = self.intrinsic[dimension]
        trait = self.model.specs[dimension].trait
        if trait is not None:
            base += sum(r.contribution_at(t) for r in self.shift_records if r.trait == trait)
        return base

    def value(self, dimension: Dimension) -> StateValue:
        return self._templates[dimension].with_components(
            base=self.base_at(dimension),
            delta=self.deltas[dimension],
        )

    def current_value_for_delta(self, dimension: Dimension) -> StateValue:
        """Template carrying the current delta; base is irrelevant to the delta laws."""
        return self._templates[dimension].with_components(
            base=self.intrinsic[dimension],
            delta=self.deltas[dimension],
        )

    def clamped_dimensions(self, tolerance: float) -> Tuple[Dimension, ...]:
        return tuple(d for d in self.dimensions if self.value(d).is_clamped(tolerance))

    def active_records(self, t: Optional[Timestamp] = None) -> Tuple[BaseShiftRecord, ...]:
        t = t or self.time
        return tuple(r for r in self.shift_records if r.contribution_at(t) != 0.0)

    # -------------------------------------------------------------------------
    # Ledger edits
    # -------------------------------------------------------------------------

    def adopt_shift_record(self, record: BaseShiftRecord, baked_in_at: Timestamp) -> None:
        """
        Add a record the anchor did not carry. Its contribution at
        `baked_in_at` is already part of the anchor's base, so intrinsic
        gives that amount up and base at `baked_in_at` is unchanged.
        """
        dimension = TRAIT_DIMENSIONS[record.trait]
        self.intrinsic[dimension] -= record.contribution_at(baked_in_at)
        self.shift_records.append(record)

    def drop_shift_record(self, record: BaseShiftRecord) -> None:
        for index in range(len(self.shift_records) - 1, -1, -1):
            if self.shift_records[index] is record:
                del self.shift_records[index]
                return
        raise ValueError(f"shift record for event {record.event_id} is not in the ledger")

    def take_crystallization(
        self, timestamp: Timestamp, dimension: Dimension, event_id: Optional[str]
    ) -> Optional[CrystallizationRecord]:
        for index in range(len(self.crystallization_records) - 1, -1, -1):
            record = self.crystallization_records[index]
            if record.matches(timestamp, dimension, event_id):
                del self.crystallization_records[index]
                return record
        return None

    # -------------------------------------------------------------------------
    # Materialization
    # -------------------------------------------------------------------------

    def to_snapshot(self, history_start: Timestamp) -> StateSnapshot:
        t = self.time
        return StateSnapshot.create(
            timestamp=t,
            values={d: self.value(d) for d in self.dimensions},
            exposure=dict(self.exposure),
            shift_records=[r for r in self.shift_records if r.timestamp <= t],
            crystallization_records=[c for c in self.crystallization_records if c.timestamp <= t],
            history_start=history_start if history_start <= t else t,
        )
