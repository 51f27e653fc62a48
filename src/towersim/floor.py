from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .config import TransitionDistribution
from .errors import InvalidConfiguration, InvalidDistribution, PersonNotFound
from .person import Person
from .probability import ProbabilityModel

TOLERANCE = 1e-9


@dataclass(frozen=True)
class Stay:
    pass


@dataclass(frozen=True)
class RequestFloor:
    target: int


@dataclass(frozen=True)
class Leave:
    pass


Transition = Union[Stay, RequestFloor, Leave]


@dataclass
class Floor:
    """A floor and the people currently standing on it."""

    number: int
    floor_count: int
    distribution: TransitionDistribution = field(default_factory=lambda: TransitionDistribution(stay=1.0))
    residents: Dict[int, Person] = field(default_factory=dict)
    outcomes: List[Transition] = field(init=False)
    weights: List[float] = field(init=False)

    def __post_init__(self) -> None:
        self.outcomes, self.weights = self._compile(self.distribution)

    @property
    def is_ground(self) -> bool:
        return self.number == 0

    def admit(self, person: Person) -> None:
        person.place_on_floor(self.number)
        self.residents[person.person_id] = person

    def remove(self, person_id: int) -> Person:
        person = self.residents.pop(person_id, None)
        if person is None:
            raise PersonNotFound(person_id, f"floor {self.number}")
        return person

    def get(self, person_id: int) -> Optional[Person]:
        return self.residents.get(person_id)

    def sample_transition(self, person: Person, model: ProbabilityModel) -> Transition:
        if person.person_id not in self.residents:
            raise PersonNotFound(person.person_id, f"floor {self.number}")
        return self.outcomes[model.sample_categorical(self.weights)]

    def idle_residents(self, tick: int) -> List[Person]:
        """Idle people who settled here before ``tick`` and may act this tick."""
        return [
            p for p in self._ordered() if p.is_idle and p.settled_tick < tick
        ]

    def awaiting_dispatch(self) -> List[Person]:
        return [p for p in self._ordered() if p.awaiting_dispatch]

    def waiting_for(self, elevator_id: int) -> List[Person]:
        return [p for p in self._ordered() if p.assigned_elevator == elevator_id]

    def _ordered(self) -> List[Person]:
        return [self.residents[pid] for pid in sorted(self.residents)]

    def _compile(self, distribution: TransitionDistribution):
        outcomes: List[Transition] = [Stay()]
        weights: List[float] = [distribution.stay]
        for target in sorted(distribution.destinations):
            probability = distribution.destinations[target]
            if not 0 <= target < self.floor_count:
                raise InvalidConfiguration(
                    f"floor {self.number} lists destination {target} outside 0..{self.floor_count - 1}"
                )
            if target == self.number and probability != 0:
                raise InvalidDistribution(f"floor {self.number} cannot request itself")
            outcomes.append(RequestFloor(target))
            weights.append(probability)
        if distribution.leave != 0 and not self.is_ground:
            raise InvalidDistribution(f"floor {self.number} is not the ground floor and cannot be left")
        outcomes.append(Leave())
        weights.append(distribution.leave)

        for weight in weights:
            if not math.isfinite(weight) or weight < 0:
                raise InvalidDistribution(
                    f"floor {self.number} has an invalid transition probability {weight}"
                )
        total = math.fsum(weights)
        if abs(total - 1.0) > TOLERANCE:
            raise InvalidDistribution(
                f"floor {self.number} transition probabilities sum to {total}, expected 1"
            )
        return outcomes, weights
