"""
Risk Factor Tests
=================

INVARIANTS TESTED:
1. TB = (loneliness + (1 - perceived caring)) / 2, PB = liability * self hate
2. Desire needs TB, PB and interpersonal hopelessness at or above 0.5
3. Attempt risk = desire * acquired capability
4. Factors are read from effective values and never modify state
"""

import pytest
from datetime import datetime, timedelta, timezone

from pathways.analysis.risk import (
    compute_risk_factors, desire, thwarted_belongingness, perceived_burdensomeness,
    ConvergenceStatus, ProximalFactor,
)
from pathways.contracts.base import Timestamp, ConfigurationError, ErrorCode
from pathways.contracts.dimensions import Dimension
from pathways.contracts.state import Anchor
from pathways.core.species import Species, EntityModelConfig
from pathways.temporal.engine import StateQueryEngine


T0 = Timestamp(value=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


def human_snapshot(**bases):
    model = EntityModelConfig.for_species(Species.HUMAN.profile)
    mapping = {getattr(Dimension, name.upper()): value for name, value in bases.items()}
    return model, model.initial_snapshot(T0, bases=mapping)


def high_risk_snapshot(interpersonal_hopelessness=0.6):
    return human_snapshot(
        loneliness=0.9,
        perceived_reciprocal_caring=0.1,
        perceived_liability=0.9,
        self_hate=0.9,
        interpersonal_hopelessness=interpersonal_hopelessness,
        acquired_capability=0.8,
    )


class TestFormulas:

    def test_component_formulas(self):
        assert thwarted_belongingness(0.9, 0.1) == pytest.approx(0.9)
        assert perceived_burdensomeness(0.9, 0.9) == pytest.approx(0.81)
        assert desire(0.9, 0.81, 0.6) == pytest.approx(0.729)

    def test_desire_gate(self):
        assert desire(0.9, 0.81, 0.49) == 0.0
        assert desire(0.49, 0.81, 0.9) == 0.0
        assert desire(0.9, 0.49, 0.9) == 0.0
        assert desire(0.5, 0.5, 0.5) == pytest.approx(0.25)


class TestRiskFactors:

    def test_high_risk(self):
        _, snapshot = high_risk_snapshot()
        risk = compute_risk_factors(snapshot)
        assert risk.thwarted_belongingness == pytest.approx(0.9)
        assert risk.perceived_burdensomeness == pytest.approx(0.81)
        assert risk.desire == pytest.approx(0.729)
        assert risk.attempt_risk == pytest.approx(0.5832)
        assert risk.has_active_desire
        assert risk.has_significant_risk
        assert risk.passive_ideation_present

    def test_low_hopelessness_blocks_desire(self):
        _, snapshot = high_risk_snapshot(interpersonal_hopelessness=0.3)
        risk = compute_risk_factors(snapshot)
        assert risk.desire == 0.0
        assert risk.attempt_risk == 0.0
        assert not risk.has_significant_risk
        assert risk.passive_ideation_present

    def test_convergence(self):
        _, snapshot = high_risk_snapshot()
        convergence = compute_risk_factors(snapshot).convergence
        assert convergence.is_three_factor_convergent
        assert convergence.has_desire
        assert not convergence.is_dormant_capability
        # AC exceeds its threshold by 0.5, more than TB (0.4) or PB (0.31)
        assert convergence.highest_factor is ProximalFactor.ACQUIRED_CAPABILITY

    def test_dormant_capability(self):
        status = ConvergenceStatus.from_factors(tb=0.2, pb=0.1, ac=0.5)
        assert status.elevated_factors == (ProximalFactor.ACQUIRED_CAPABILITY,)
        assert status.is_dormant_capability
        assert not status.has_desire

    def test_no_factor_elevated(self):
        status = ConvergenceStatus.from_factors(tb=0.1, pb=0.1, ac=0.0)
        assert status.highest_factor is None
        assert status.elevated_factors == ()

    def test_uses_effective_values(self):
        model, snapshot = high_risk_snapshot()
        # Capability far past its bound still reads as 1.0
        boosted = model.initial_snapshot(
            T0,
            bases={d: v.base for d, v in snapshot.values},
            deltas={Dimension.ACQUIRED_CAPABILITY: 0.9},
        )
        risk = compute_risk_factors(boosted)
        assert risk.acquired_capability == 1.0
        assert risk.attempt_risk == pytest.approx(0.729)

    def test_accepts_computed_state(self):
        model, snapshot = high_risk_snapshot()
        state = StateQueryEngine().compute_state(model, Anchor(snapshot), [], T0.plus(timedelta(days=1)))
        risk = compute_risk_factors(state)
        assert risk.acquired_capability == pytest.approx(0.8)
        assert risk.thwarted_belongingness == pytest.approx(0.9)

    def test_species_without_social_cognition(self):
        cat = EntityModelConfig.for_species(Species.CAT.profile)
        with pytest.raises(ConfigurationError) as exc_info:
            compute_risk_factors(cat.initial_snapshot(T0))
        assert exc_info.value.code is ErrorCode.DIMENSION_NOT_ACTIVE
