"""
Derived Emotions
================

Read-only emotion intensities computed from the mood octant a state sits in.
Valence, arousal and dominance are read as effective values in [-1, 1],
mapped onto [0, 1] and split into a "high" and a "low" pole:

    n    = (v + 1) / 2
    high = clamp01((n - 0.5) / 0.5)
    low  = clamp01((0.5 - n) / 0.5)

Each emotion is the weakest of the three poles that define its octant.
Disgust is hostility gated by an external moral-violation signal in [0, 1];
there is no mood dimension for it. A neutral mood yields zero everywhere.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from ..contracts.dimensions import Dimension
from ..contracts.state import StateSnapshot, ComputedState


class Emotion(Enum):
    EXUBERANT = "exuberant"
    DEPENDENT = "dependent"
    RELAXED = "relaxed"
    DOCILE = "docile"
    HOSTILE = "hostile"
    DISGUST = "disgust"
    ANXIOUS = "anxious"
    BORED = "bored"
    DEPRESSED = "depressed"


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def _poles(value: float) -> Tuple[float, float]:
    """(high, low) for a mood value in [-1, 1]."""
    n = _clamp01((value + 1.0) / 2.0)
    return _clamp01((n - 0.5) / 0.5), _clamp01((0.5 - n) / 0.5)


@dataclass(frozen=True)
class EmotionIntensities:
    exuberant: float = 0.0
    dependent: float = 0.0
    relaxed: float = 0.0
    docile: float = 0.0
    hostile: float = 0.0
    disgust: float = 0.0
    anxious: float = 0.0
    bored: float = 0.0
    depressed: float = 0.0

    def intensity(self, emotion: Emotion) -> float:
        return getattr(self, emotion.value)

    def as_dict(self) -> Dict[Emotion, float]:
        return {emotion: self.intensity(emotion) for emotion in Emotion}

    @property
    def dominant(self) -> Optional[Emotion]:
        """Strongest emotion, first in declaration order on ties; None when all are zero."""
        best: Optional[Emotion] = None
        for emotion in Emotion:
            if self.intensity(emotion) > (self.intensity(best) if best is not None else 0.0):
                best = emotion
        return best


def derive_emotions(
    valence: float,
    arousal: float,
    dominance: float,
    moral_violation: float = 0.0,
) -> EmotionIntensities:
    v_high, v_low = _poles(valence)
    a_high, a_low = _poles(arousal)
    d_high, d_low = _poles(dominance)

    hostile = min(v_low, a_high, d_high)
    return EmotionIntensities(
        exuberant=min(v_high, a_high, d_high),
        dependent=min(v_high, a_high, d_low),
        relaxed=min(v_high, a_low, d_high),
        docile=min(v_high, a_low, d_low),
        hostile=hostile,
        disgust=hostile * _clamp01(moral_violation),
        anxious=min(v_low, a_high, d_low),
        bored=min(v_low, a_low, d_high),
        depressed=min(v_low, a_low, d_low),
    )


def compute_emotions(state, moral_violation: float = 0.0) -> EmotionIntensities:
    """
    Accepts a StateSnapshot or a ComputedState. Raises ConfigurationError
    if the state has no mood dimensions.
    """
    snapshot: StateSnapshot = state.snapshot if isinstance(state, ComputedState) else state
    return derive_emotions(
        snapshot.effective(Dimension.VALENCE),
        snapshot.effective(Dimension.AROUSAL),
        snapshot.effective(Dimension.DOMINANCE),
        moral_violation=moral_violation,
    )
