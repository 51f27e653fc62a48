from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from dispatch import WeightingPolicy, euclidean_distance, get_policy, nearest_fallback

from .config import Coordinate, DoorConfig
from .errors import EmptyElevatorSet, InvalidConfiguration, InvalidDistribution

if TYPE_CHECKING:
    from .elevator import Elevator


class Door:
    """Named ground-floor entrance with a fixed position in the lobby plane."""

    def __init__(
        self,
        name: str,
        position: Sequence[float],
        arrival_probability: float,
        policy: WeightingPolicy,
    ) -> None:
        if not (0.0 <= arrival_probability <= 1.0):
            raise InvalidDistribution(
                f"door '{name}' arrival probability must lie in [0, 1], got {arrival_probability}"
            )
        self.name = name
        self.position: Coordinate = tuple(float(x) for x in position)
        self.arrival_probability = arrival_probability
        self.policy = policy

    @classmethod
    def from_config(cls, config: DoorConfig) -> "Door":
        try:
            policy = get_policy(config.weighting, **config.weighting_options)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"door '{config.name}': {exc}") from exc
        return cls(config.name, config.position, config.arrival_probability, policy)

    def distance_to(self, elevator: "Elevator") -> float:
        try:
            return euclidean_distance(self.position, elevator.position)
        except ValueError as exc:
            raise InvalidConfiguration(f"door '{self.name}' vs elevator '{elevator.name}': {exc}") from exc

    def elevator_weights(self, elevators: Sequence["Elevator"]) -> List[float]:
        if not elevators:
            raise EmptyElevatorSet(f"door '{self.name}' has no elevators to choose from")
        distances = [self.distance_to(elevator) for elevator in elevators]
        return nearest_fallback([self.policy.weight(d) for d in distances], distances)
