"""
Event Contracts
===============

An EventEffect is an opaque, already-computed effect: per-dimension deltas
and trait shift requests at an absolute timestamp. How those numbers were
produced (context, memory, authoring) is outside this package.

GUARANTEES:
===========
- Every delta and shift magnitude is validated against [-1, 1] at
  construction; nothing downstream re-checks or silently clips them
- EventEffect.create derives the event_id from content, so identical
  effects always get identical ids
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple, Union
import hashlib

from .base import Timestamp, Error, ErrorCode, OutOfRangeInputError, require_unit_range
from .dimensions import Dimension, Trait


@dataclass(frozen=True)
class BaseShiftRequest:
    """A request to permanently move a trait's base by `magnitude` (before modifiers)."""
    trait: Trait
    magnitude: float

    def __post_init__(self):
        require_unit_range(f"shift[{self.trait.value}]", self.magnitude)


@dataclass(frozen=True)
class EventEffect:
    event_id: str
    timestamp: Timestamp
    deltas: Tuple[Tuple[Dimension, float], ...] = field(default_factory=tuple)
    base_shift_requests: Tuple[BaseShiftRequest, ...] = field(default_factory=tuple)
    label: str = ""

    def __post_init__(self):
        if not self.event_id:
            raise OutOfRangeInputError(Error(
                code=ErrorCode.VALUE_OUT_OF_RANGE,
                message="EventEffect requires a non-empty event_id",
                at=self.timestamp,
            ))
        seen = set()
        for dimension, value in self.deltas:
            if dimension in seen:
                raise OutOfRangeInputError(Error(
                    code=ErrorCode.VALUE_OUT_OF_RANGE,
                    message=f"Duplicate delta for {dimension.value}",
                    at=self.timestamp,
                    context=(("event_id", self.event_id),),
                ))
            seen.add(dimension)
            require_unit_range(f"delta[{dimension.value}]", value)

    @staticmethod
    def create(
        timestamp: Timestamp,
        deltas: Optional[Dict[Dimension, float]] = None,
        base_shifts: Optional[Union[Dict[Trait, float], Iterable[BaseShiftRequest]]] = None,
        label: str = "",
    ) -> EventEffect:
        """
        Build an effect with a content-derived event id.

        base_shifts may be a trait -> magnitude mapping or a sequence of
        BaseShiftRequest (which allows several requests on one trait).
        """
        delta_items = tuple(sorted((deltas or {}).items(), key=lambda item: item[0]))
        if isinstance(base_shifts, dict):
            requests = tuple(
                BaseShiftRequest(trait=trait, magnitude=magnitude)
                for trait, magnitude in base_shifts.items()
            )
        else:
            requests = tuple(base_shifts or ())

        for dimension, value in delta_items:
            require_unit_range(f"delta[{dimension.value}]", value)

        seed_parts = [timestamp.to_iso(), label]
        seed_parts.extend(f"{dim.value}={value!r}" for dim, value in delta_items)
        seed_parts.extend(f"{req.trait.value}~{req.magnitude!r}" for req in requests)
        content_hash = hashlib.sha256("|".join(seed_parts).encode('utf-8')).hexdigest()[:16]

        return EventEffect(
            event_id=f"evt_{content_hash}",
            timestamp=timestamp,
            deltas=delta_items,
            base_shift_requests=requests,
            label=label,
        )

    def delta_for(self, dimension: Dimension) -> float:
        for dim, value in self.deltas:
            if dim == dimension:
                return value
        return 0.0

    @property
    def touched_dimensions(self) -> Tuple[Dimension, ...]:
        return tuple(dim for dim, _ in self.deltas)

    @property
    def shifted_traits(self) -> Tuple[Trait, ...]:
        return tuple(req.trait for req in self.base_shift_requests)
