"""
Forward Projection Tests
========================

INVARIANTS TESTED:
1. Deltas decay (or grow) across each interval before the event lands
2. Elapsed real time is scaled by the species time scale
3. Needs grow past their bounds in delta while effective values clamp
4. Base shifts go through the formative modifiers and keep settling
5. Crystallization moves delta into base without changing the effective value
6. Only a delta held across an interval accrues crystallization exposure
"""

import math

import pytest
from datetime import datetime, timedelta, timezone

from pathways.contracts.base import Timestamp
from pathways.contracts.dimensions import Dimension, Trait, CrystallizationSpec
from pathways.contracts.events import EventEffect
from pathways.contracts.state import Anchor, QueryDirection, LifeStage, StateSnapshot
from pathways.core.species import Species, EntityModelConfig, DimensionOverride
from pathways.temporal.engine import StateQueryEngine


T0 = Timestamp(value=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
BIRTH_2006 = Timestamp(value=datetime(2006, 1, 1, tzinfo=timezone.utc))


def at(days=0.0, hours=0.0):
    return T0.plus(timedelta(days=days, hours=hours))


def human(birth=None, overrides=None):
    return EntityModelConfig.for_species(Species.HUMAN.profile, birth=birth, overrides=overrides)


def anchored(model, deltas=None, bases=None, timestamp=T0):
    return Anchor(snapshot=model.initial_snapshot(timestamp, bases=bases, deltas=deltas))


SLOW_VALENCE = {Dimension.VALENCE: DimensionOverride(half_life_days=3.0)}


class TestPassiveEvolution:
    """Decay and growth between checkpoints."""

    def test_two_half_lives(self):
        model = human(overrides=SLOW_VALENCE)
        anchor = anchored(model, deltas={Dimension.VALENCE: -0.5})
        state = StateQueryEngine().compute_state(model, anchor, [], at(days=6))
        assert state.direction is QueryDirection.FORWARD
        assert state.value(Dimension.VALENCE).delta == pytest.approx(-0.125)
        assert state.effective(Dimension.VALENCE) == pytest.approx(-0.125)
        assert state.checkpoints_processed == 1

    def test_dog_clock_runs_faster(self):
        dog = EntityModelConfig.for_species(Species.DOG.profile, overrides=SLOW_VALENCE)
        anchor = anchored(dog, deltas={Dimension.VALENCE: -0.5})
        # 0.45 real days x 80/12 = 3 internal days = one half-life
        state = StateQueryEngine().compute_state(dog, anchor, [], at(days=0.45))
        assert state.effective(Dimension.VALENCE) == pytest.approx(-0.25)

    def test_event_lands_after_decay(self):
        model = human(overrides=SLOW_VALENCE)
        anchor = anchored(model)
        event = EventEffect.create(at(days=3), deltas={Dimension.VALENCE: -0.5})
        state = StateQueryEngine().compute_state(model, anchor, [event], at(days=6))
        assert state.value(Dimension.VALENCE).delta == pytest.approx(-0.25)
        assert state.checkpoints_processed == 2

    def test_fatigue_grows(self):
        model = human()
        anchor = anchored(model)
        state = StateQueryEngine().compute_state(model, anchor, [], at(days=10))
        assert state.value(Dimension.FATIGUE).delta == pytest.approx(0.2)
        assert state.effective(Dimension.FATIGUE) == pytest.approx(0.4)
        assert Dimension.FATIGUE not in state.clamped

    def test_fatigue_delta_is_not_clamped(self):
        model = human()
        anchor = anchored(model)
        state = StateQueryEngine().compute_state(model, anchor, [], at(days=100))
        assert state.value(Dimension.FATIGUE).delta == pytest.approx(2.0)
        assert state.effective(Dimension.FATIGUE) == 1.0
        assert Dimension.FATIGUE in state.clamped

    def test_permanent_dimension_holds(self):
        model = human()
        anchor = anchored(model)
        event = EventEffect.create(at(days=1), deltas={Dimension.ACQUIRED_CAPABILITY: 0.4})
        state = StateQueryEngine().compute_state(model, anchor, [event], at(days=400))
        assert state.effective(Dimension.ACQUIRED_CAPABILITY) == pytest.approx(0.4)

    def test_event_order_in_input_does_not_matter(self):
        model = human(overrides=SLOW_VALENCE)
        anchor = anchored(model)
        first = EventEffect.create(at(days=1), deltas={Dimension.VALENCE: -0.3})
        second = EventEffect.create(at(days=2), deltas={Dimension.STRESS: 0.4})
        engine = StateQueryEngine()
        a = engine.compute_state(model, anchor, [first, second], at(days=5))
        b = engine.compute_state(model, anchor, [second, first], at(days=5))
        assert a.snapshot.state_hash == b.snapshot.state_hash


class TestBaseShifts:
    """Formative events through the engine."""

    def test_agreeableness_shift_at_twenty(self):
        model = human(birth=BIRTH_2006)
        anchor = anchored(model)
        event = EventEffect.create(at(hours=1), base_shifts={Trait.AGREEABLENESS: -0.25})
        state = StateQueryEngine().compute_state(model, anchor, [event], at(days=1))
        assert state.value(Dimension.AGREEABLENESS).base == pytest.approx(-0.0875)
        assert len(state.active_shift_records) == 1
        assert state.snapshot.records_for(Trait.AGREEABLENESS)[0].event_id == event.event_id
        assert state.life_stage is LifeStage.YOUNG_ADULT
        assert state.age_years == pytest.approx(20.0, abs=0.01)

    def test_severe_shift_settles(self):
        model = human(birth=BIRTH_2006)
        anchor = anchored(model)
        event = EventEffect.create(at(days=1), base_shifts={Trait.NEUROTICISM: -1.0})
        engine = StateQueryEngine()

        immediate = engine.compute_state(model, anchor, [event], at(days=1))
        assert immediate.value(Dimension.NEUROTICISM).base == pytest.approx(-0.30)

        halfway = engine.compute_state(model, anchor, [event], at(days=19))
        assert halfway.value(Dimension.NEUROTICISM).base == pytest.approx(-0.255)

        settled = engine.compute_state(model, anchor, [event], at(days=181))
        assert settled.value(Dimension.NEUROTICISM).base == pytest.approx(-0.21, abs=1e-3)

    def test_records_carried_by_anchor_keep_settling(self):
        model = human(birth=BIRTH_2006)
        engine = StateQueryEngine()
        event = EventEffect.create(at(days=1), base_shifts={Trait.NEUROTICISM: -1.0})
        midway = engine.compute_state(model, anchored(model), [event], at(days=10))

        reanchored = Anchor(snapshot=midway.snapshot)
        later = engine.compute_state(model, reanchored, [event], at(days=19))
        assert later.value(Dimension.NEUROTICISM).base == pytest.approx(-0.255)

    def test_second_shift_is_saturated(self):
        model = human(birth=BIRTH_2006)
        first = EventEffect.create(at(days=1), base_shifts={Trait.AGREEABLENESS: -0.25})
        second = EventEffect.create(at(days=2), base_shifts={Trait.AGREEABLENESS: -0.25})
        state = StateQueryEngine().compute_state(model, anchored(model), [first, second], at(days=3))
        expected = -0.0875 - 0.0875 * (1 - 0.0875)
        assert state.value(Dimension.AGREEABLENESS).base == pytest.approx(expected)


class TestCrystallization:
    """Sustained deltas becoming base."""

    def test_conversion_preserves_effective(self):
        overrides = {
            Dimension.DEPRESSION: DimensionOverride(
                half_life_days=1000.0,
                crystallization=CrystallizationSpec(threshold=1.0, fraction=0.5),
            ),
        }
        model = human(overrides=overrides)
        anchor = anchored(model, deltas={Dimension.DEPRESSION: 0.4})
        state = StateQueryEngine().compute_state(model, anchor, [], at(days=5))

        decayed = 0.4 * 2.0 ** (-5 / 1000)
        value = state.value(Dimension.DEPRESSION)
        assert value.base == pytest.approx(0.1 + decayed / 2)
        assert value.delta == pytest.approx(decayed / 2)
        assert state.effective(Dimension.DEPRESSION) == pytest.approx(0.1 + decayed)

        records = state.snapshot.crystallization_records
        assert len(records) == 1
        assert records[0].dimension is Dimension.DEPRESSION
        assert records[0].event_id is None
        held = (0.4 - decayed) * 1000 / math.log(2.0)
        assert state.snapshot.exposure_for(Dimension.DEPRESSION) == pytest.approx(held - 1.0)

    def test_spike_after_quiet_period_does_not_crystallize(self):
        model = human()
        spike = EventEffect.create(at(days=30), deltas={Dimension.LONELINESS: 0.5}, label="spike")
        state = StateQueryEngine().compute_state(model, anchored(model), [spike], at(days=30))

        assert state.snapshot.crystallization_records == ()
        assert state.snapshot.exposure_for(Dimension.LONELINESS) == 0.0
        assert state.value(Dimension.LONELINESS).base == pytest.approx(0.2)
        assert state.value(Dimension.LONELINESS).delta == pytest.approx(0.5)

    def test_banked_exposure_waits_for_a_held_delta(self):
        model = human()
        initial = model.initial_snapshot(T0)
        anchor = Anchor(StateSnapshot.create(
            timestamp=T0,
            values=initial.values_by_dimension(),
            exposure={Dimension.LONELINESS: 2.5},
        ))
        spike = EventEffect.create(at(days=30), deltas={Dimension.LONELINESS: 0.5}, label="spike")
        engine = StateQueryEngine()

        # Neither the spike checkpoint nor the zero-length query step converts
        at_spike = engine.compute_state(model, anchor, [spike], at(days=30))
        assert at_spike.snapshot.crystallization_records == ()
        assert at_spike.snapshot.exposure_for(Dimension.LONELINESS) == pytest.approx(2.5)

        # Holding the spike for a day does
        later = engine.compute_state(model, anchor, [spike], at(days=31))
        records = later.snapshot.crystallization_records
        assert len(records) == 1
        assert records[0].timestamp == at(days=31)
        assert records[0].amount == pytest.approx(0.05 * 0.25)

    def test_non_crystallizing_dimension_has_no_exposure(self):
        model = human()
        anchor = anchored(model, deltas={Dimension.STRESS: 0.5})
        state = StateQueryEngine().compute_state(model, anchor, [], at(days=5))
        assert state.snapshot.exposure_for(Dimension.STRESS) == 0.0
        assert state.snapshot.crystallization_records == ()
