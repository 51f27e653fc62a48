from __future__ import annotations

import math

from .utils import check_distance


class GaussianWeighting:
    """Bell-shaped falloff, flat near the door and steep further away."""

    name = "gaussian"

    def __init__(self, width: float = 1.0) -> None:
        if width <= 0:
            raise ValueError(f"gaussian weighting width must be positive, got {width}")
        self.width = float(width)

    def weight(self, distance: float) -> float:
        check_distance(distance)
        return math.exp(-0.5 * (distance / self.width) ** 2)
