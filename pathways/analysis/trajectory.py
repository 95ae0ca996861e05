"""
Trajectory Sampling
===================

Samples effective values at many instants into a numpy matrix
(rows = timestamps, columns = dimensions).

Each row is an independent engine query from the same anchor; nothing is
carried between rows, so a trajectory is exactly what point queries would
return one at a time.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence, Tuple

import numpy as np

from ..contracts.base import Timestamp, Error, ErrorCode, ConfigurationError
from ..contracts.dimensions import Dimension
from ..contracts.events import EventEffect
from ..contracts.state import Anchor, RegressionQuality
from ..core.species import EntityModelConfig
from ..temporal.engine import StateQueryEngine


@dataclass(frozen=True, eq=False)
class Trajectory:
    timestamps: Tuple[Timestamp, ...]
    dimensions: Tuple[Dimension, ...]
    values: np.ndarray
    quality: Tuple[RegressionQuality, ...]

    def __post_init__(self):
        if self.values.shape != (len(self.timestamps), len(self.dimensions)):
            raise ValueError("Trajectory matrix shape does not match its axes")

    def column(self, dimension: Dimension) -> np.ndarray:
        try:
            index = self.dimensions.index(dimension)
        except ValueError:
            raise ConfigurationError(Error(
                code=ErrorCode.DIMENSION_NOT_ACTIVE,
                message=f"Dimension {dimension.value} was not sampled",
                context=(("dimension", dimension.value),),
            ))
        return self.values[:, index]

    def changes(self) -> np.ndarray:
        """Row-to-row differences; shape (len(timestamps) - 1, len(dimensions))."""
        return np.diff(self.values, axis=0)

    def extremes(self, dimension: Dimension) -> Tuple[Timestamp, Timestamp]:
        """Instants of the lowest and highest sampled value (first occurrence)."""
        column = self.column(dimension)
        return self.timestamps[int(np.argmin(column))], self.timestamps[int(np.argmax(column))]

    @property
    def all_exact(self) -> bool:
        return all(q is RegressionQuality.EXACT for q in self.quality)


def evenly_spaced(start: Timestamp, end: Timestamp, count: int) -> Tuple[Timestamp, ...]:
    """`count` instants from start to end inclusive."""
    if count < 2:
        raise ValueError("count must be at least 2")
    total = (end.value - start.value).total_seconds()
    offsets = np.linspace(0.0, total, count)
    return tuple(start.plus(timedelta(seconds=float(s))) for s in offsets)


def sample_trajectory(
    engine: StateQueryEngine,
    model: EntityModelConfig,
    anchor: Anchor,
    events: Sequence[EventEffect],
    timestamps: Sequence[Timestamp],
    dimensions: Optional[Sequence[Dimension]] = None,
) -> Trajectory:
    if dimensions is None:
        dimensions = tuple(sorted(model.specs))
    for dimension in dimensions:
        model.spec(dimension)

    values = np.empty((len(timestamps), len(dimensions)), dtype=float)
    quality = []
    for row, t in enumerate(timestamps):
        state = engine.compute_state(model, anchor, events, t)
        values[row, :] = [state.effective(d) for d in dimensions]
        quality.append(state.regression_quality)

    values.setflags(write=False)
    return Trajectory(
        timestamps=tuple(timestamps),
        dimensions=tuple(dimensions),
        values=values,
        quality=tuple(quality),
    )
