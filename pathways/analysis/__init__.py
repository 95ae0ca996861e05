"""
Analysis Layer

Read-only views over computed states. Nothing in this layer feeds back
into projection or regression.

Modules:
- risk: interpersonal-theory risk factors from effective values
- emotions: emotion intensities from the mood octant
- trajectory: sampled state trajectories as numpy matrices
"""

from .risk import RiskFactors, ConvergenceStatus, ProximalFactor, compute_risk_factors
from .emotions import Emotion, EmotionIntensities, derive_emotions, compute_emotions
from .trajectory import Trajectory, sample_trajectory, evenly_spaced

__all__ = [
    'RiskFactors',
    'ConvergenceStatus',
    'ProximalFactor',
    'compute_risk_factors',
    'Emotion',
    'EmotionIntensities',
    'derive_emotions',
    'compute_emotions',
    'Trajectory',
    'sample_trajectory',
    'evenly_spaced',
]
