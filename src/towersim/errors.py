from __future__ import annotations


class SimulationError(Exception):
    """Base class for every error raised by the engine."""


class InvalidConfiguration(SimulationError, ValueError):
    """Structural setup error detected while building the simulation."""


class InvalidDistribution(InvalidConfiguration):
    """Probabilities that are negative, degenerate or do not sum to one."""


class EmptyElevatorSet(InvalidConfiguration):
    """A door was asked to weight an empty set of elevators."""


class InvalidFloor(SimulationError, ValueError):
    """A requested floor lies outside the building."""

    def __init__(self, floor: int, floor_count: int, reason: str = "") -> None:
        self.floor = floor
        self.floor_count = floor_count
        message = reason or f"floor {floor} is outside 0..{floor_count - 1}"
        super().__init__(message)


class PersonNotFound(SimulationError, LookupError):
    """A person was expected on a floor or elevator but is not there."""

    def __init__(self, person_id: int, where: str) -> None:
        self.person_id = person_id
        super().__init__(f"person {person_id} is not on {where}")


class InvalidTransition(SimulationError, RuntimeError):
    """A floor produced a transition that is illegal there."""
