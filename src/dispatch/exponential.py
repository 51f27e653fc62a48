from __future__ import annotations

import math

from .utils import check_distance


class ExponentialDecayWeighting:
    """Weights elevators by ``exp(-distance / scale)``.

    Large distances relative to ``scale`` underflow to zero. Such an elevator
    is never picked while any other one has a positive weight; when all of
    them underflow the nearest ones are used instead.
    """

    name = "exponential"

    def __init__(self, scale: float = 1.0) -> None:
        if scale <= 0:
            raise ValueError(f"exponential weighting scale must be positive, got {scale}")
        self.scale = float(scale)

    def weight(self, distance: float) -> float:
        check_distance(distance)
        return math.exp(-distance / self.scale)
