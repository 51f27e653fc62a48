from __future__ import annotations

from typing import Protocol


class WeightingPolicy(Protocol):
    """Maps a distance to a non-negative dispatch weight.

    Implementations must be monotonically decreasing in distance so that a
    closer elevator is never less likely to be chosen than a farther one.
    """

    name: str

    def weight(self, distance: float) -> float:
        """Return the weight for an elevator ``distance`` away."""
        ...
