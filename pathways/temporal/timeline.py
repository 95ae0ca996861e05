"""
Timeline Assembler
==================

Selects the events between an anchor and a query instant and orders the
checkpoints the steppers walk.

    forward:  A -> e1 -> ... -> en -> Q     (a step ends at e1..en and at Q)
    backward: A -> en -> ... -> e1 -> Q     (a step starts at A and at en..e1)

Events with equal timestamps keep their insertion order (stable sort).
Events outside [min(A, Q), max(A, Q)] are never selected.

BOUNDARY POLICY:
================
REFLECTED_AT_TIMESTAMP (default): the state at t reflects events with ts <= t.
    forward selects (A, Q], backward selects (Q, A].
REFLECTED_AFTER_TIMESTAMP: the state at t reflects events with ts < t.
    forward selects [A, Q), backward selects [Q, A).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from enum import Enum

from ..contracts.base import Timestamp
from ..contracts.events import EventEffect
from ..contracts.state import QueryDirection


class EventBoundary(Enum):
    REFLECTED_AT_TIMESTAMP = "reflected_at_timestamp"
    REFLECTED_AFTER_TIMESTAMP = "reflected_after_timestamp"


@dataclass(frozen=True)
class Checkpoint:
    """A step boundary. Boundary checkpoints (A or Q) carry no event."""
    timestamp: Timestamp
    event: Optional[EventEffect] = None

    @property
    def event_id(self) -> Optional[str]:
        return self.event.event_id if self.event is not None else None

    @property
    def is_boundary(self) -> bool:
        return self.event is None


@dataclass(frozen=True)
class Timeline:
    """
    Ordered checkpoints from anchor to query.

    `steps` are the checkpoints a stepper processes, in processing order.
    Forward: e1..en then Q. Backward: A then en..e1.
    """
    direction: QueryDirection
    anchor_time: Timestamp
    query_time: Timestamp
    steps: Tuple[Checkpoint, ...]
    events: Tuple[EventEffect, ...]
    boundary: EventBoundary = EventBoundary.REFLECTED_AT_TIMESTAMP

    def __len__(self) -> int:
        return len(self.steps)

    def interval_start(self, index: int) -> Timestamp:
        """Earlier edge of the interval that ends (forward) or starts (backward) at steps[index]."""
        if self.direction is QueryDirection.FORWARD:
            return self.anchor_time if index == 0 else self.steps[index - 1].timestamp
        if index + 1 < len(self.steps):
            return self.steps[index + 1].timestamp
        return self.query_time

    def ledger_complete_at(self, checkpoint: Checkpoint, history_start: Timestamp) -> bool:
        """
        Whether a forward pass from `history_start` would have stepped through
        `checkpoint`, so the ledgers record everything that happened there.
        Under REFLECTED_AFTER_TIMESTAMP that includes events at history_start.
        """
        t = checkpoint.timestamp
        if t > history_start:
            return True
        return (
            t == history_start
            and not checkpoint.is_boundary
            and self.boundary is EventBoundary.REFLECTED_AFTER_TIMESTAMP
        )


def _selected(event: EventEffect, anchor_time: Timestamp, query_time: Timestamp,
              boundary: EventBoundary) -> bool:
    ts = event.timestamp
    if query_time > anchor_time:
        if boundary is EventBoundary.REFLECTED_AT_TIMESTAMP:
            return anchor_time < ts <= query_time
        return anchor_time <= ts < query_time
    if boundary is EventBoundary.REFLECTED_AT_TIMESTAMP:
        return query_time < ts <= anchor_time
    return query_time <= ts < anchor_time


def select_events(
    events: Sequence[EventEffect],
    anchor_time: Timestamp,
    query_time: Timestamp,
    boundary: EventBoundary = EventBoundary.REFLECTED_AT_TIMESTAMP,
) -> Tuple[EventEffect, ...]:
    """Events inside the query window, in chronological (then insertion) order."""
    if anchor_time == query_time:
        return ()
    chosen = [e for e in events if _selected(e, anchor_time, query_time, boundary)]
    # sorted() is stable, so ties keep insertion order
    return tuple(sorted(chosen, key=lambda e: e.timestamp.value))


def assemble(
    events: Sequence[EventEffect],
    anchor_time: Timestamp,
    query_time: Timestamp,
    boundary: EventBoundary = EventBoundary.REFLECTED_AT_TIMESTAMP,
) -> Timeline:
    selected = select_events(events, anchor_time, query_time, boundary)

    if query_time == anchor_time:
        direction = QueryDirection.AT_ANCHOR
        steps: Tuple[Checkpoint, ...] = ()
    elif query_time > anchor_time:
        direction = QueryDirection.FORWARD
        steps = tuple(Checkpoint(e.timestamp, e) for e in selected) + (Checkpoint(query_time),)
    else:
        direction = QueryDirection.BACKWARD
        steps = (Checkpoint(anchor_time),) + tuple(
            Checkpoint(e.timestamp, e) for e in reversed(selected)
        )

    return Timeline(
        direction=direction,
        anchor_time=anchor_time,
        query_time=query_time,
        steps=steps,
        events=selected,
        boundary=boundary,
    )
