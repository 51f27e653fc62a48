from __future__ import annotations

from .utils import check_distance


class InverseDistanceWeighting:
    """Weights elevators by ``1 / (offset + distance) ** power``."""

    name = "inverse"

    def __init__(self, power: float = 1.0, offset: float = 1.0) -> None:
        if power <= 0:
            raise ValueError(f"inverse weighting power must be positive, got {power}")
        if offset <= 0:
            raise ValueError(f"inverse weighting offset must be positive, got {offset}")
        self.power = float(power)
        self.offset = float(offset)

    def weight(self, distance: float) -> float:
        check_distance(distance)
        # Negative exponent underflows to zero instead of overflowing for huge powers.
        return (self.offset + distance) ** -self.power
