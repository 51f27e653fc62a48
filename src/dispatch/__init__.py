from __future__ import annotations

from typing import Dict, Type

from .exponential import ExponentialDecayWeighting
from .gaussian import GaussianWeighting
from .interface import WeightingPolicy
from .inverse import InverseDistanceWeighting
from .utils import euclidean_distance, nearest_fallback

__all__ = [
    "ExponentialDecayWeighting",
    "GaussianWeighting",
    "InverseDistanceWeighting",
    "WeightingPolicy",
    "euclidean_distance",
    "get_policy",
    "nearest_fallback",
]


POLICY_REGISTRY: Dict[str, Type[WeightingPolicy]] = {
    "inverse": InverseDistanceWeighting,
    "exponential": ExponentialDecayWeighting,
    "gaussian": GaussianWeighting,
}


def get_policy(name: str, **kwargs) -> WeightingPolicy:
    cls = POLICY_REGISTRY.get(name.lower())
    if cls is None:
        raise ValueError(f"Unknown weighting policy '{name}'. Available: {', '.join(POLICY_REGISTRY)}")
    return cls(**kwargs)
