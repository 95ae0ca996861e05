"""
State Query Engine
==================

Single entry point for "what was/will this state be at time Q?".

INVARIANTS:
===========
- Pure: the result depends only on (model, anchor, events, query time, config)
- Nothing is cached between calls; each query replays from the anchor
- A query exactly at the anchor returns the anchor unchanged and EXACT
- Inputs are validated before any stepping; stepping itself cannot fail
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..contracts.base import Timestamp, Error, ErrorCode, ConfigurationError
from ..contracts.events import EventEffect
from ..contracts.state import (
    Anchor, ComputedState, QueryDirection, RegressionQuality,
)
from ..core.crystallization import CrystallizationAccumulator
from ..core.decay import DEFAULT_INVERSE_EXPONENT_LIMIT
from ..core.formative import FormativeCalculator
from ..core.species import EntityModelConfig
from ..observability import AuditLog, AuditEventType, MetricsCollector
from .timeline import EventBoundary, assemble
from .projector import ForwardProjector
from .regressor import BackwardRegressor


@dataclass
class EngineConfig:
    """Configuration for the state query engine."""
    boundary: EventBoundary = EventBoundary.REFLECTED_AT_TIMESTAMP
    tolerance: float = 1e-9
    inverse_exponent_limit: float = DEFAULT_INVERSE_EXPONENT_LIMIT

    def __post_init__(self):
        if self.tolerance < 0.0 or self.inverse_exponent_limit <= 0.0:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message="tolerance must be >= 0 and inverse_exponent_limit > 0",
            ))


class StateQueryEngine:
    """
    Dispatches a query to the forward projector or the backward regressor.

    Holds configuration and optional observers only. Safe to share across
    threads because it keeps no per-query state.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        audit: Optional[AuditLog] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._config = config or EngineConfig()
        self._audit = audit
        self._metrics = metrics

    @property
    def config(self) -> EngineConfig:
        return self._config

    def compute_state(
        self,
        model: EntityModelConfig,
        anchor: Anchor,
        events: Sequence[EventEffect],
        query: Timestamp,
        subject: str = "entity",
    ) -> ComputedState:
        model.validate_snapshot(anchor.snapshot)
        for event in events:
            model.validate_event(event)

        timeline = assemble(events, anchor.timestamp, query, self._config.boundary)
        formative = FormativeCalculator(model.tables)
        crystallizer = CrystallizationAccumulator(self._config.tolerance)

        if timeline.direction is QueryDirection.AT_ANCHOR:
            snapshot = anchor.snapshot
            result = ComputedState(
                snapshot=snapshot,
                direction=QueryDirection.AT_ANCHOR,
                active_shift_records=tuple(
                    r for r in snapshot.shift_records if r.contribution_at(query) != 0.0
                ),
                age_years=model.age_at(query),
                life_stage=model.life_stage_at(query),
            )
        elif timeline.direction is QueryDirection.FORWARD:
            outcome = ForwardProjector(
                model, formative, crystallizer, self._config.tolerance
            ).project(anchor, timeline)
            result = ComputedState(
                snapshot=outcome.snapshot,
                direction=QueryDirection.FORWARD,
                active_shift_records=outcome.active_shift_records,
                age_years=model.age_at(query),
                life_stage=model.life_stage_at(query),
                checkpoints_processed=outcome.checkpoints_processed,
                clamped=outcome.clamped,
            )
        else:
            outcome = BackwardRegressor(
                model,
                formative,
                crystallizer,
                self._config.tolerance,
                self._config.inverse_exponent_limit,
            ).regress(anchor, timeline)
            result = ComputedState(
                snapshot=outcome.snapshot,
                direction=QueryDirection.BACKWARD,
                regression_quality=(
                    RegressionQuality.EXACT if outcome.exact else RegressionQuality.APPROXIMATE
                ),
                approximations=outcome.approximations,
                active_shift_records=outcome.active_shift_records,
                age_years=model.age_at(query),
                life_stage=model.life_stage_at(query),
                checkpoints_processed=outcome.checkpoints_processed,
                clamped=outcome.clamped,
            )

        self._observe(subject, query, result)
        return result

    def verify_determinism(
        self,
        model: EntityModelConfig,
        anchor: Anchor,
        events: Sequence[EventEffect],
        query: Timestamp,
    ) -> Tuple[bool, Optional[str]]:
        """
        Run the same query twice and compare snapshot hashes.
        Returns (is_deterministic, difference_description).
        """
        first = self.compute_state(model, anchor, events, query)
        second = self.compute_state(model, anchor, events, query)
        if first.snapshot.state_hash != second.snapshot.state_hash:
            return False, (
                f"State hash mismatch: {first.snapshot.state_hash[:16]} "
                f"vs {second.snapshot.state_hash[:16]}"
            )
        return True, None

    def _observe(self, subject: str, query: Timestamp, result: ComputedState) -> None:
        direction = result.direction.value
        if self._metrics is not None:
            self._metrics.increment("queries_total", {"direction": direction})
            self._metrics.record("checkpoints_processed", float(result.checkpoints_processed))
            if not result.is_exact:
                self._metrics.increment("regressions_approximate_total")
        if self._audit is not None:
            self._audit.record(
                AuditEventType.QUERY_EXECUTED,
                subject=subject,
                at=query,
                details={
                    "direction": direction,
                    "checkpoints": str(result.checkpoints_processed),
                    "state_hash": result.snapshot.state_hash,
                },
            )
            if not result.is_exact:
                self._audit.record(
                    AuditEventType.REGRESSION_APPROXIMATE,
                    subject=subject,
                    at=query,
                    details={
                        "causes": ",".join(c.value for c in result.approximation_causes),
                    },
                )
