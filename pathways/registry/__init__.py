"""
Simulation Registry

RESPONSIBILITY: Own entities, relationships, their anchors and event lists
ALLOWED INPUTS: Contracts (EntityId, StateSnapshot, EventEffect, Timestamp)
OUTPUTS: ComputedState and RelationshipState (read-only views)

WHAT THIS LAYER MUST NOT DO:
============================
- Compute state itself (delegates to StateQueryEngine)
- Cache computed states between queries
- Hold one global lock across timelines

BOUNDARY ENFORCEMENT:
=====================
- Exactly one anchor per timeline; a second one is an AnchorViolationError
- Every event is validated against the timeline's model when recorded
- Queries hold the timeline's read lock; anchor and event writes hold its
  write lock
- Relationships live on the edges of a networkx graph keyed by the
  unordered entity pair
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
import threading

import networkx as nx

from ..contracts.base import (
    EntityId, RelationshipId, Timestamp, Error, ErrorCode,
    ConfigurationError, AnchorViolationError,
)
from ..contracts.events import EventEffect
from ..contracts.state import Anchor, StateSnapshot, ComputedState, missing_anchor
from ..core.species import EntityModelConfig, DimensionOverride
from ..contracts.dimensions import Dimension
from ..observability import AuditLog, AuditEventType, MetricsCollector
from ..temporal.engine import StateQueryEngine
from .locks import ReadWriteLock


@dataclass
class TimelineRecord:
    """Mutable per-timeline storage. Only touched under `lock`."""
    subject: str
    model: EntityModelConfig
    anchor: Optional[Anchor] = None
    events: List[EventEffect] = field(default_factory=list)
    lock: ReadWriteLock = field(default_factory=ReadWriteLock)


@dataclass(frozen=True)
class RelationshipState:
    """A relationship query: the shared state plus both members' states at the same instant."""
    relationship_id: RelationshipId
    relationship: ComputedState
    members: Tuple[Tuple[EntityId, ComputedState], ...]

    def member(self, entity_id: EntityId) -> ComputedState:
        for member_id, state in self.members:
            if member_id == entity_id:
                return state
        raise ConfigurationError(Error(
            code=ErrorCode.UNKNOWN_ENTITY,
            message=f"{entity_id.value} is not a member of {self.relationship_id.value}",
        ))


class Simulation:
    """
    Registry of timelines.

    Entities are graph nodes; relationships are graph edges whose `timeline`
    attribute holds the relationship's own anchor and events.
    """

    def __init__(
        self,
        engine: Optional[StateQueryEngine] = None,
        audit: Optional[AuditLog] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._engine = engine or StateQueryEngine(audit=audit, metrics=metrics)
        self._audit = audit
        self._metrics = metrics
        self._graph = nx.Graph()
        self._relationships: Dict[str, RelationshipId] = {}
        # Guards graph structure only, never held while computing
        self._structure_lock = threading.Lock()

    @property
    def engine(self) -> StateQueryEngine:
        return self._engine

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def register_entity(self, entity_id: EntityId, model: EntityModelConfig) -> None:
        if model.is_relationship:
            raise ConfigurationError(Error(
                code=ErrorCode.INVALID_CONFIGURATION,
                message="Entities need an individual model, not a relationship model",
                context=(("entity_id", entity_id.value),),
            ))
        with self._structure_lock:
            if self._graph.has_node(entity_id.value):
                raise ConfigurationError(Error(
                    code=ErrorCode.DUPLICATE_ENTITY,
                    message=f"Entity {entity_id.value} is already registered",
                    context=(("entity_id", entity_id.value),),
                ))
            self._graph.add_node(
                entity_id.value,
                timeline=TimelineRecord(subject=entity_id.value, model=model),
            )
        self._log(AuditEventType.ENTITY_REGISTERED, entity_id.value, None, {"model": model.name})

    def has_entity(self, entity_id: EntityId) -> bool:
        with self._structure_lock:
            return self._graph.has_node(entity_id.value)

    def entities(self) -> Tuple[EntityId, ...]:
        with self._structure_lock:
            return tuple(EntityId(node) for node in sorted(self._graph.nodes))

    def model_of(self, entity_id: EntityId) -> EntityModelConfig:
        return self._entity_timeline(entity_id).model

    def set_anchor(self, entity_id: EntityId, snapshot: StateSnapshot) -> Anchor:
        return self._set_anchor(self._entity_timeline(entity_id), snapshot)

    def add_event(self, entity_id: EntityId, event: EventEffect) -> None:
        self._add_event(self._entity_timeline(entity_id), event)

    def events_of(self, entity_id: EntityId) -> Tuple[EventEffect, ...]:
        timeline = self._entity_timeline(entity_id)
        with timeline.lock.read():
            return tuple(timeline.events)

    def anchor_of(self, entity_id: EntityId) -> Optional[Anchor]:
        timeline = self._entity_timeline(entity_id)
        with timeline.lock.read():
            return timeline.anchor

    def state_at(self, entity_id: EntityId, query: Timestamp) -> ComputedState:
        return self._query(self._entity_timeline(entity_id), query)

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def register_relationship(
        self,
        a: EntityId,
        b: EntityId,
        overrides: Optional[Dict[Dimension, DimensionOverride]] = None,
    ) -> RelationshipId:
        relationship_id = RelationshipId.for_pair(a, b)
        model_a = self.model_of(a)
        model_b = self.model_of(b)
        model = EntityModelConfig.for_relationship(
            time_scale=max(model_a.time_scale, model_b.time_scale),
            tables=model_a.tables,
            overrides=overrides,
        )
        with self._structure_lock:
            if self._graph.has_edge(a.value, b.value):
                raise ConfigurationError(Error(
                    code=ErrorCode.DUPLICATE_ENTITY,
                    message=f"Relationship {relationship_id.value} is already registered",
                    context=(("relationship_id", relationship_id.value),),
                ))
            self._graph.add_edge(
                a.value,
                b.value,
                timeline=TimelineRecord(subject=relationship_id.value, model=model),
                relationship_id=relationship_id,
            )
            self._relationships[relationship_id.value] = relationship_id
        self._log(
            AuditEventType.RELATIONSHIP_REGISTERED,
            relationship_id.value,
            None,
            {"members": f"{relationship_id.members[0].value},{relationship_id.members[1].value}"},
        )
        return relationship_id

    def relationship_between(self, a: EntityId, b: EntityId) -> Optional[RelationshipId]:
        with self._structure_lock:
            if not self._graph.has_edge(a.value, b.value):
                return None
            return self._graph.edges[a.value, b.value]["relationship_id"]

    def relationships_of(self, entity_id: EntityId) -> Tuple[RelationshipId, ...]:
        self._entity_timeline(entity_id)
        with self._structure_lock:
            ids = [
                self._graph.edges[entity_id.value, other]["relationship_id"]
                for other in self._graph.neighbors(entity_id.value)
            ]
        return tuple(sorted(ids, key=lambda rid: rid.value))

    def social_circles(self) -> List[Set[EntityId]]:
        """Connected groups of entities linked through registered relationships."""
        with self._structure_lock:
            components = [set(c) for c in nx.connected_components(self._graph)]
        return [{EntityId(node) for node in component} for component in components]

    def set_relationship_anchor(self, relationship_id: RelationshipId, snapshot: StateSnapshot) -> Anchor:
        return self._set_anchor(self._relationship_timeline(relationship_id), snapshot)

    def add_relationship_event(self, relationship_id: RelationshipId, event: EventEffect) -> None:
        self._add_event(self._relationship_timeline(relationship_id), event)

    def relationship_model(self, relationship_id: RelationshipId) -> EntityModelConfig:
        return self._relationship_timeline(relationship_id).model

    def relationship_state_at(self, relationship_id: RelationshipId, query: Timestamp) -> RelationshipState:
        shared = self._query(self._relationship_timeline(relationship_id), query)
        # Each timeline is read under its own lock, one at a time
        members = tuple(
            (member, self._query(self._entity_timeline(member), query))
            for member in relationship_id.members
        )
        return RelationshipState(
            relationship_id=relationship_id,
            relationship=shared,
            members=members,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _entity_timeline(self, entity_id: EntityId) -> TimelineRecord:
        with self._structure_lock:
            if not self._graph.has_node(entity_id.value):
                raise ConfigurationError(Error(
                    code=ErrorCode.UNKNOWN_ENTITY,
                    message=f"Entity {entity_id.value} is not registered",
                    context=(("entity_id", entity_id.value),),
                ))
            return self._graph.nodes[entity_id.value]["timeline"]

    def _relationship_timeline(self, relationship_id: RelationshipId) -> TimelineRecord:
        a, b = relationship_id.members
        with self._structure_lock:
            if relationship_id.value not in self._relationships or not self._graph.has_edge(a.value, b.value):
                raise ConfigurationError(Error(
                    code=ErrorCode.UNKNOWN_RELATIONSHIP,
                    message=f"Relationship {relationship_id.value} is not registered",
                    context=(("relationship_id", relationship_id.value),),
                ))
            return self._graph.edges[a.value, b.value]["timeline"]

    def _set_anchor(self, timeline: TimelineRecord, snapshot: StateSnapshot) -> Anchor:
        timeline.model.validate_snapshot(snapshot)
        with timeline.lock.write():
            if timeline.anchor is not None:
                raise AnchorViolationError(Error(
                    code=ErrorCode.ANCHOR_ALREADY_SET,
                    message=f"{timeline.subject} already has an anchor at {timeline.anchor.timestamp.to_iso()}",
                    at=snapshot.timestamp,
                    context=(("subject", timeline.subject),),
                ))
            timeline.anchor = Anchor(snapshot=snapshot)
            anchor = timeline.anchor
        self._log(AuditEventType.ANCHOR_SET, timeline.subject, snapshot.timestamp, {
            "state_hash": snapshot.state_hash,
        })
        return anchor

    def _add_event(self, timeline: TimelineRecord, event: EventEffect) -> None:
        timeline.model.validate_event(event)
        with timeline.lock.write():
            timeline.events.append(event)
        self._log(AuditEventType.EVENT_RECORDED, timeline.subject, event.timestamp, {
            "event_id": event.event_id,
        })
        if self._metrics is not None:
            self._metrics.increment("events_recorded_total")

    def _query(self, timeline: TimelineRecord, query: Timestamp) -> ComputedState:
        with timeline.lock.read():
            if timeline.anchor is None:
                raise missing_anchor(timeline.subject)
            return self._engine.compute_state(
                timeline.model,
                timeline.anchor,
                timeline.events,
                query,
                subject=timeline.subject,
            )

    def _log(self, event_type: AuditEventType, subject: str, at: Optional[Timestamp], details: Dict[str, str]) -> None:
        if self._audit is not None:
            self._audit.record(event_type, subject=subject, at=at, details=details)


__all__ = [
    'Simulation',
    'RelationshipState',
    'TimelineRecord',
    'ReadWriteLock',
]
