from __future__ import annotations

import math
from typing import List, Sequence


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Distance between two coordinates of the same dimension (1-D, 2-D, ...)."""

    if len(a) != len(b):
        raise ValueError(f"cannot compare a {len(a)}-D position with a {len(b)}-D position")
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def check_distance(distance: float) -> None:
    if not math.isfinite(distance) or distance < 0:
        raise ValueError(f"distance must be finite and non-negative, got {distance}")


def nearest_fallback(weights: Sequence[float], distances: Sequence[float]) -> List[float]:
    """Return ``weights`` unchanged unless every one underflowed to zero.

    In that case the nearest elevators (ties included) share the draw evenly,
    so a far-away call is still served instead of having no candidate at all.
    """

    if any(weight > 0 for weight in weights):
        return list(weights)
    closest = min(distances)
    return [1.0 if distance == closest else 0.0 for distance in distances]
