"""
Integration Test Fixtures

Fixed, explicit fixtures for registry-level testing.
No random generation; every timestamp is pinned.
"""

from datetime import timedelta

from pathways.contracts.base import EntityId, Timestamp
from pathways.contracts.dimensions import Dimension, Trait
from pathways.contracts.events import EventEffect
from pathways.core.species import Species, EntityModelConfig
from pathways.observability import AuditLog, MetricsCollector
from pathways.registry import Simulation


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

EPOCH = Timestamp.from_ymd_hms(2026, 1, 1, 0, 0, 0)
T1 = Timestamp.from_ymd_hms(2026, 1, 2, 9, 0, 0)
T2 = Timestamp.from_ymd_hms(2026, 1, 3, 18, 30, 0)
T3 = Timestamp.from_ymd_hms(2026, 1, 6, 12, 0, 0)

ALICE_BIRTH = Timestamp.from_ymd_hms(1994, 5, 20)
REX_BIRTH = Timestamp.from_ymd_hms(2022, 8, 1)


def days_after(t: Timestamp, days: float) -> Timestamp:
    return t.plus(timedelta(days=days))


# =============================================================================
# ENTITIES
# =============================================================================

ALICE = EntityId("alice")
BOB = EntityId("bob")
REX = EntityId("rex")
CAROL = EntityId("carol")


def human_model(birth=ALICE_BIRTH) -> EntityModelConfig:
    return EntityModelConfig.for_species(Species.HUMAN.profile, birth=birth)


def dog_model() -> EntityModelConfig:
    return EntityModelConfig.for_species(Species.DOG.profile, birth=REX_BIRTH)


def make_simulation(observed: bool = True):
    """Simulation with fresh collectors. Returns (simulation, audit, metrics)."""
    audit = AuditLog("integration") if observed else None
    metrics = MetricsCollector() if observed else None
    return Simulation(audit=audit, metrics=metrics), audit, metrics


def make_populated_simulation():
    """Alice and Bob anchored at EPOCH, with a rough week for Alice."""
    simulation, audit, metrics = make_simulation()
    simulation.register_entity(ALICE, human_model())
    simulation.register_entity(BOB, human_model(Timestamp.from_ymd_hms(1990, 2, 2)))
    simulation.set_anchor(ALICE, simulation.model_of(ALICE).initial_snapshot(EPOCH))
    simulation.set_anchor(BOB, simulation.model_of(BOB).initial_snapshot(EPOCH))
    for event in rough_week_events():
        simulation.add_event(ALICE, event)
    return simulation, audit, metrics


# =============================================================================
# EVENT FIXTURES
# =============================================================================

def rough_week_events():
    return [
        EventEffect.create(
            T1,
            deltas={Dimension.STRESS: 0.5, Dimension.VALENCE: -0.4},
            label="layoff",
        ),
        EventEffect.create(
            T2,
            deltas={Dimension.LONELINESS: 0.4, Dimension.PERCEIVED_RECIPROCAL_CARING: -0.3},
            base_shifts={Trait.EXTRAVERSION: -0.2},
            label="moved_away",
        ),
    ]


def argument_event(t: Timestamp = T2) -> EventEffect:
    return EventEffect.create(
        t,
        deltas={Dimension.CONFLICT: 0.4, Dimension.WARMTH: -0.2},
        label="argument",
    )
