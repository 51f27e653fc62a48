from __future__ import annotations

import math
import random
from typing import Optional, Sequence

from .errors import InvalidDistribution


class ProbabilityModel:
    """Seeded sampling primitives shared by every stochastic phase of a run.

    Each building owns exactly one model, so two buildings built with the
    same seed and configuration replay identically and independent runs
    never share random state.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self.random = random.Random(seed)
        self.draws = 0

    def reseed(self, seed: Optional[int]) -> None:
        self.seed = seed
        self.random.seed(seed)
        self.draws = 0

    def sample_bernoulli(self, p: float) -> bool:
        if not (0.0 <= p <= 1.0):
            raise InvalidDistribution(f"Bernoulli probability must lie in [0, 1], got {p}")
        self.draws += 1
        return self.random.random() < p

    def sample_categorical(self, weights: Sequence[float]) -> int:
        total = validate_weights(weights)
        self.draws += 1
        threshold = self.random.random() * total
        cumulative = 0.0
        chosen = -1
        for index, weight in enumerate(weights):
            if weight <= 0:
                continue
            chosen = index
            cumulative += weight
            if threshold < cumulative:
                return index
        # Rounding can leave the threshold a hair above the running sum.
        return chosen


def validate_weights(weights: Sequence[float]) -> float:
    """Return the sum of ``weights`` or raise if they cannot form a distribution."""

    if not weights:
        raise InvalidDistribution("Categorical distribution needs at least one weight")
    total = 0.0
    for weight in weights:
        if not math.isfinite(weight) or weight < 0:
            raise InvalidDistribution(f"Weights must be finite and non-negative, got {weight}")
        total += weight
    if total <= 0:
        raise InvalidDistribution("All weights are zero")
    return total
