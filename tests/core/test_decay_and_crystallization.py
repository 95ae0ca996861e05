"""
Decay, Growth and Crystallization Tests
=======================================

INVARIANTS TESTED:
1. Decaying deltas halve every half-life; inverse restores them
2. Need deltas grow linearly and are never clamped themselves
3. Permanent deltas never change
4. Exposure is the area under |delta| actually held across an interval
5. Crystallization converts a fraction of delta into base once exposure
   reaches the threshold, at most once per checkpoint
6. The crystallization inverse restores delta, base and exposure
"""

import math

import pytest
from datetime import timedelta

from pathways.contracts.dimensions import CrystallizationSpec, DimensionKind
from pathways.contracts.state import StateValue
from pathways.core.decay import (
    decay_delta, undecay_delta, grow_delta, ungrow_delta,
    evolve_forward, evolve_backward, held_exposure,
)
from pathways.core.crystallization import CrystallizationAccumulator


THREE_DAYS = timedelta(days=3)


class TestDecayLaw:
    """Exponential return toward zero."""

    def test_two_half_lives(self):
        assert decay_delta(-0.5, THREE_DAYS, 6.0) == pytest.approx(-0.125)

    def test_no_half_life_means_no_decay(self):
        assert decay_delta(-0.5, None, 100.0) == -0.5
        assert decay_delta(-0.5, timedelta(0), 100.0) == -0.5

    def test_zero_interval(self):
        assert decay_delta(0.3, THREE_DAYS, 0.0) == 0.3

    def test_inverse(self):
        restored, limited = undecay_delta(-0.125, THREE_DAYS, 6.0)
        assert restored == pytest.approx(-0.5)
        assert not limited

    def test_inverse_exponent_limit(self):
        restored, limited = undecay_delta(1e-6, timedelta(hours=6), 30.0, exponent_limit=60.0)
        assert limited
        assert restored == pytest.approx(1e-6 * 2.0 ** 60)

    def test_evolve_dispatches_on_kind(self):
        value = StateValue(base=0.0, delta=-0.5, min_bound=-1.0, decay_half_life=THREE_DAYS)
        assert evolve_forward(value, DimensionKind.DECAYING, 3.0) == pytest.approx(-0.25)
        assert evolve_forward(value, DimensionKind.PERMANENT, 3.0) == -0.5
        delta, limited = evolve_backward(value, DimensionKind.DECAYING, 3.0)
        assert delta == pytest.approx(-1.0)
        assert not limited


class TestNeedGrowth:
    """Linear growth of needs."""

    def test_growth_and_inverse(self):
        assert grow_delta(0.0, 0.02, 10.0) == pytest.approx(0.2)
        assert ungrow_delta(0.2, 0.02, 10.0) == pytest.approx(0.0)

    def test_delta_grows_past_bound(self):
        value = StateValue(base=0.2, delta=0.0, growth_rate=0.02)
        delta = evolve_forward(value, DimensionKind.NEED, 100.0)
        assert delta == pytest.approx(2.0)
        grown = value.with_components(base=0.2, delta=delta)
        assert grown.effective == 1.0
        assert grown.delta == pytest.approx(2.0)

    def test_need_inverse_is_exact_subtraction(self):
        value = StateValue(base=0.2, delta=2.0, growth_rate=0.02)
        delta, limited = evolve_backward(value, DimensionKind.NEED, 100.0)
        assert delta == pytest.approx(0.0)
        assert not limited


class TestHeldExposure:
    """Area under |delta| across one interval."""

    def test_decaying_area(self):
        value = StateValue(base=0.0, delta=0.5, decay_half_life=THREE_DAYS)
        area = held_exposure(value, DimensionKind.DECAYING, 0.5, 0.125, 6.0)
        assert area == pytest.approx(0.375 * 3.0 / math.log(2.0))

    def test_decaying_area_never_exceeds_full_decay(self):
        value = StateValue(base=0.0, delta=-0.5, min_bound=-1.0, decay_half_life=THREE_DAYS)
        end = decay_delta(-0.5, THREE_DAYS, 30.0)
        area = held_exposure(value, DimensionKind.DECAYING, -0.5, end, 30.0)
        assert 0.0 < area < 0.5 * 3.0 / math.log(2.0)

    def test_need_trapezoid(self):
        value = StateValue(base=0.2, delta=0.1, growth_rate=0.1)
        assert held_exposure(value, DimensionKind.NEED, 0.1, 0.3, 2.0) == pytest.approx(0.4)

    def test_need_crossing_zero(self):
        value = StateValue(base=0.2, delta=-0.2, growth_rate=0.1)
        # two triangles of base 2 days and height 0.2
        assert held_exposure(value, DimensionKind.NEED, -0.2, 0.2, 4.0) == pytest.approx(0.4)

    def test_permanent(self):
        value = StateValue(base=0.0, delta=0.3)
        assert held_exposure(value, DimensionKind.PERMANENT, 0.3, 0.3, 2.0) == pytest.approx(0.6)

    def test_no_time_no_exposure(self):
        value = StateValue(base=0.0, delta=0.5, decay_half_life=THREE_DAYS)
        assert held_exposure(value, DimensionKind.DECAYING, 0.5, 0.5, 0.0) == 0.0
        assert held_exposure(value, DimensionKind.PERMANENT, 0.5, 0.5, 0.0) == 0.0


class TestCrystallization:
    """Sustained exposure ratchet."""

    SPEC = CrystallizationSpec(threshold=1.0, fraction=0.5)

    def test_below_threshold_only_accumulates(self):
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=0.0, held=0.8, delta=0.4, stage_plasticity=1.0,
        )
        assert result.exposure == pytest.approx(0.8)
        assert result.converted is None

    def test_conversion(self):
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=0.5, held=0.8, delta=0.4, stage_plasticity=1.0,
        )
        assert result.converted == pytest.approx(0.2)
        assert result.exposure == pytest.approx(0.3)

    def test_one_conversion_per_checkpoint(self):
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=0.0, held=5.0, delta=0.5, stage_plasticity=1.0,
        )
        # 5.0 exposure, but only one threshold is consumed
        assert result.converted == pytest.approx(0.25)
        assert result.exposure == pytest.approx(4.0)

    def test_nothing_held_means_no_conversion(self):
        # Banked exposure alone never converts a delta that was not held
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=2.5, held=0.0, delta=0.5, stage_plasticity=1.0,
        )
        assert result.converted is None
        assert result.exposure == pytest.approx(2.5)

    def test_negative_delta_uses_magnitude(self):
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=0.0, held=1.2, delta=-0.6, stage_plasticity=1.0,
        )
        assert result.converted == pytest.approx(-0.3)

    def test_stage_plasticity_scales_exposure(self):
        result = CrystallizationAccumulator().forward(
            self.SPEC, exposure=0.0, held=0.4, delta=0.2, stage_plasticity=2.0,
        )
        assert result.exposure == pytest.approx(0.8)

    def test_unconvert_with_known_conversion(self):
        accumulator = CrystallizationAccumulator()
        undone = accumulator.unconvert(self.SPEC, exposure=0.3, delta=0.2, converted=0.2)
        assert undone.delta == pytest.approx(0.4)
        assert undone.base_adjustment == pytest.approx(-0.2)
        assert undone.exposure == pytest.approx(1.3)

        released = accumulator.release(undone.exposure, held=0.8, stage_plasticity=1.0, known_zone=True)
        assert released.exposure == pytest.approx(0.5)
        assert not released.history_unknown

    def test_unconvert_without_record_changes_nothing(self):
        undone = CrystallizationAccumulator.unconvert(self.SPEC, exposure=0.3, delta=0.2, converted=None)
        assert (undone.exposure, undone.delta, undone.base_adjustment) == (0.3, 0.2, 0.0)

    def test_release_without_history_flags_unknown(self):
        released = CrystallizationAccumulator().release(
            0.0, held=0.8, stage_plasticity=1.0, known_zone=False,
        )
        assert released.history_unknown
        assert released.exposure == 0.0

    def test_release_tiny_negative_in_known_zone_is_silent(self):
        released = CrystallizationAccumulator().release(
            0.8 - 1e-15, held=0.8, stage_plasticity=1.0, known_zone=True,
        )
        assert not released.history_unknown
        assert released.exposure == 0.0
