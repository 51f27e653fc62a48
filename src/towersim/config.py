from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

Coordinate = Tuple[float, ...]


@dataclass
class ElevatorConfig:
    """Static parameters of one elevator car."""

    name: Optional[str] = None
    position: Sequence[float] = (0.0,)
    start_floor: int = 0
    energy_up: float = 1.0
    energy_down: float = 1.0
    energy_per_passenger: float = 0.0
    capacity: Optional[int] = None
    resting_floor: Optional[int] = None


@dataclass
class DoorConfig:
    """An entrance on the ground floor and the traffic it lets in."""

    name: str
    position: Sequence[float] = (0.0,)
    arrival_probability: float = 0.0
    weighting: str = "inverse"
    weighting_options: Dict[str, float] = field(default_factory=dict)


@dataclass
class TransitionDistribution:
    """Per-tick behaviour of an idle resident of one floor.

    ``stay``, every value in ``destinations`` and ``leave`` must sum to one.
    ``leave`` is only meaningful on the ground floor.
    """

    stay: float = 0.0
    destinations: Dict[int, float] = field(default_factory=dict)
    leave: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict) -> "TransitionDistribution":
        return cls(
            stay=data.get("stay", 0.0),
            destinations={int(floor): p for floor, p in data.get("destinations", {}).items()},
            leave=data.get("leave", 0.0),
        )


@dataclass
class BuildingConfig:
    floor_count: int
    elevators: List[ElevatorConfig]
    doors: List[DoorConfig]
    transitions: List[TransitionDistribution]
    seed: Optional[int] = None
    arrival_destinations: Optional[Dict[int, float]] = None
    dispatch: str = "inverse"
    dispatch_options: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "BuildingConfig":
        arrival_destinations = data.get("arrival_destinations")
        if arrival_destinations is not None:
            arrival_destinations = {int(floor): w for floor, w in arrival_destinations.items()}
        return cls(
            floor_count=data["floor_count"],
            elevators=[
                ElevatorConfig(**{**cfg, "position": tuple(cfg.get("position", (0.0,)))})
                for cfg in data.get("elevators", [])
            ],
            doors=[
                DoorConfig(**{**cfg, "position": tuple(cfg.get("position", (0.0,)))})
                for cfg in data.get("doors", [])
            ],
            transitions=[TransitionDistribution.from_dict(t) for t in data.get("transitions", [])],
            seed=data.get("seed"),
            arrival_destinations=arrival_destinations,
            dispatch=data.get("dispatch", "inverse"),
            dispatch_options=data.get("dispatch_options", {}),
        )
