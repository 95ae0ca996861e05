"""
Trajectory Sampling Tests
=========================

INVARIANTS TESTED:
1. Each row equals an independent point query
2. The sample matrix is read-only
3. Samples may straddle the anchor; each row carries its regression quality
"""

import numpy as np
import pytest
from datetime import datetime, timedelta, timezone

from pathways.analysis.trajectory import Trajectory, evenly_spaced, sample_trajectory
from pathways.contracts.base import Timestamp, ConfigurationError
from pathways.contracts.dimensions import Dimension
from pathways.contracts.events import EventEffect
from pathways.contracts.state import Anchor, RegressionQuality
from pathways.core.species import Species, EntityModelConfig, DimensionOverride
from pathways.temporal.engine import StateQueryEngine


T0 = Timestamp(value=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


def at(days):
    return T0.plus(timedelta(days=days))


@pytest.fixture
def model():
    return EntityModelConfig.for_species(
        Species.HUMAN.profile,
        overrides={Dimension.VALENCE: DimensionOverride(half_life_days=3.0)},
    )


@pytest.fixture
def anchor(model):
    return Anchor(model.initial_snapshot(T0, deltas={Dimension.VALENCE: -0.4}))


class TestEvenlySpaced:

    def test_endpoints_included(self):
        stamps = evenly_spaced(at(0), at(4), 5)
        assert stamps == tuple(at(d) for d in range(5))

    def test_needs_two_points(self):
        with pytest.raises(ValueError):
            evenly_spaced(at(0), at(4), 1)


class TestSampling:

    def test_valence_recovers(self, model, anchor):
        stamps = evenly_spaced(at(0), at(6), 3)
        trajectory = sample_trajectory(StateQueryEngine(), model, anchor, [], stamps, [Dimension.VALENCE])
        np.testing.assert_allclose(trajectory.column(Dimension.VALENCE), [-0.4, -0.2, -0.1])
        assert (trajectory.changes() > 0).all()
        lowest, highest = trajectory.extremes(Dimension.VALENCE)
        assert lowest == at(0)
        assert highest == at(6)

    def test_rows_match_point_queries(self, model, anchor):
        engine = StateQueryEngine()
        events = [EventEffect.create(at(2), deltas={Dimension.STRESS: 0.3, Dimension.VALENCE: 0.2})]
        stamps = (at(-1), at(1), at(2), at(5))
        dims = (Dimension.STRESS, Dimension.VALENCE, Dimension.FATIGUE)
        trajectory = sample_trajectory(engine, model, anchor, events, stamps, dims)
        for row, t in enumerate(stamps):
            state = engine.compute_state(model, anchor, events, t)
            assert list(trajectory.values[row]) == [state.effective(d) for d in dims]

    def test_default_dimensions_cover_model(self, model, anchor):
        trajectory = sample_trajectory(StateQueryEngine(), model, anchor, [], (at(0), at(1)))
        assert trajectory.values.shape == (2, len(model.specs))
        assert set(trajectory.dimensions) == set(model.active_dimensions)

    def test_quality_per_row(self, model):
        anchor = Anchor(model.initial_snapshot(T0, deltas={Dimension.VALENCE: -0.5}))
        # Six days back the valence inverse leaves [-1, 1]
        trajectory = sample_trajectory(
            StateQueryEngine(), model, anchor, [], (at(-6), at(0), at(3)), [Dimension.VALENCE],
        )
        assert trajectory.quality == (
            RegressionQuality.APPROXIMATE, RegressionQuality.EXACT, RegressionQuality.EXACT,
        )
        assert not trajectory.all_exact

    def test_values_read_only(self, model, anchor):
        trajectory = sample_trajectory(StateQueryEngine(), model, anchor, [], (at(0), at(1)))
        with pytest.raises(ValueError):
            trajectory.values[0, 0] = 5.0

    def test_unknown_dimension(self, model, anchor):
        with pytest.raises(ConfigurationError):
            sample_trajectory(StateQueryEngine(), model, anchor, [], (at(0), at(1)), [Dimension.TRUST])
        trajectory = sample_trajectory(
            StateQueryEngine(), model, anchor, [], (at(0), at(1)), [Dimension.VALENCE],
        )
        with pytest.raises(ConfigurationError):
            trajectory.column(Dimension.STRESS)

    def test_shape_mismatch_rejected(self):
        with pytest.raises(ValueError):
            Trajectory(timestamps=(at(0),), dimensions=(Dimension.VALENCE,), values=np.zeros((2, 1)), quality=())
