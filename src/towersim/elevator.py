from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Deque, Dict, List, Optional

from .config import Coordinate, ElevatorConfig
from .errors import InvalidConfiguration, InvalidFloor
from .metrics import CompensatedSum, MetricsAggregator
from .person import Person

if TYPE_CHECKING:
    from .building import Building

logger = logging.getLogger(__name__)


@dataclass
class ElevatorStepResult:
    elevator_id: int
    boarded: List[int] = field(default_factory=list)
    alighted: List[int] = field(default_factory=list)
    floors_moved: int = 0
    energy: float = 0.0


@dataclass
class Elevator:
    """A car serving its destination queue strictly first-in, first-out.

    A floor enqueued by a hall call during tick ``t`` becomes actionable at
    ``t + 1``; floors enqueued by riders after boarding are actionable at
    once. The car moves at most one floor per tick.
    """

    elevator_id: int
    floor_count: int
    name: str = ""
    position: Coordinate = (0.0,)
    current_floor: int = 0
    energy_up: float = 1.0
    energy_down: float = 1.0
    energy_per_passenger: float = 0.0
    capacity: Optional[int] = None
    resting_floor: Optional[int] = None
    target_queue: Deque[int] = field(default_factory=deque)
    passengers: Dict[int, Person] = field(default_factory=dict)
    _energy: CompensatedSum = field(default_factory=CompensatedSum, repr=False)
    _ready_at: Dict[int, int] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"elevator-{self.elevator_id}"
        self.position = tuple(float(x) for x in self.position)
        for label, value in (
            ("energy_up", self.energy_up),
            ("energy_down", self.energy_down),
            ("energy_per_passenger", self.energy_per_passenger),
        ):
            if not math.isfinite(value) or value < 0:
                raise InvalidConfiguration(f"{self.name}: {label} must be finite and non-negative, got {value}")
        if not 0 <= self.current_floor < self.floor_count:
            raise InvalidConfiguration(f"{self.name}: start floor {self.current_floor} is out of range")
        if self.resting_floor is not None and not 0 <= self.resting_floor < self.floor_count:
            raise InvalidConfiguration(f"{self.name}: resting floor {self.resting_floor} is out of range")
        if self.capacity is not None and self.capacity < 1:
            raise InvalidConfiguration(f"{self.name}: capacity must be at least 1, got {self.capacity}")

    @classmethod
    def from_config(cls, elevator_id: int, floor_count: int, config: ElevatorConfig) -> "Elevator":
        return cls(
            elevator_id=elevator_id,
            floor_count=floor_count,
            name=config.name or "",
            position=tuple(config.position),
            current_floor=config.start_floor,
            energy_up=config.energy_up,
            energy_down=config.energy_down,
            energy_per_passenger=config.energy_per_passenger,
            capacity=config.capacity,
            resting_floor=config.resting_floor,
        )

    @property
    def direction(self) -> int:
        if not self.target_queue:
            return 0
        head = self.target_queue[0]
        if head > self.current_floor:
            return 1
        if head < self.current_floor:
            return -1
        return 0

    @property
    def cumulative_energy(self) -> float:
        return self._energy.value

    def is_idle(self) -> bool:
        return not self.target_queue

    def is_full(self) -> bool:
        return self.capacity is not None and len(self.passengers) >= self.capacity

    def request(
        self,
        from_floor: int,
        target_floor: int,
        tick: int,
        person: Optional[Person] = None,
    ) -> None:
        """Register a hall call from ``from_floor`` to ``target_floor``.

        Raises ``InvalidFloor`` without touching the queue if either floor is
        out of range or both are the same floor.
        """
        self._check_floor(from_floor)
        self._check_floor(target_floor)
        if from_floor == target_floor:
            raise InvalidFloor(target_floor, self.floor_count, f"request from floor {from_floor} to itself")

        self.assign_target(from_floor, ready_at=tick + 1)
        self.assign_target(target_floor, ready_at=tick + 1)
        if person is not None:
            person.record_request(self.elevator_id, target_floor, tick)
            logger.debug(
                "tick %d: %s takes request of person %d, %d -> %d",
                tick, self.name, person.person_id, from_floor, target_floor,
            )

    def assign_target(self, floor: int, ready_at: int) -> None:
        if floor in self.target_queue:
            return
        self.target_queue.append(floor)
        self._ready_at[floor] = ready_at

    def step(self, building: "Building", tick: int, metrics: MetricsAggregator) -> ElevatorStepResult:
        result = ElevatorStepResult(self.elevator_id)
        if self._head_ready(tick) and self.target_queue[0] == self.current_floor:
            self._handle_stop(building, tick, metrics, result)

        if not self.target_queue and not self.passengers:
            self._return_to_rest(tick)

        if self._head_ready(tick) and self.target_queue[0] != self.current_floor:
            self._move_towards_target(metrics, result)
            if self.target_queue[0] == self.current_floor:
                self._handle_stop(building, tick, metrics, result)
        return result

    def _head_ready(self, tick: int) -> bool:
        return bool(self.target_queue) and self._ready_at[self.target_queue[0]] <= tick

    def _move_towards_target(self, metrics: MetricsAggregator, result: ElevatorStepResult) -> None:
        going_up = self.target_queue[0] > self.current_floor
        base = self.energy_up if going_up else self.energy_down
        energy = base + self.energy_per_passenger * len(self.passengers)
        self.current_floor += 1 if going_up else -1
        self._energy.add(energy)
        metrics.record_energy(self.name, energy)
        result.floors_moved += 1
        result.energy += energy

    def _handle_stop(
        self,
        building: "Building",
        tick: int,
        metrics: MetricsAggregator,
        result: ElevatorStepResult,
    ) -> None:
        floor_number = self.target_queue.popleft()
        del self._ready_at[floor_number]
        floor = building.floors[floor_number]

        # Alight
        for person_id in sorted(self.passengers):
            person = self.passengers[person_id]
            if person.destination != floor_number:
                continue
            del self.passengers[person_id]
            person.record_alighting(tick)
            floor.admit(person)
            result.alighted.append(person_id)

        # Board
        left_behind = False
        for person in floor.waiting_for(self.elevator_id):
            if person.wait_start_tick is None or person.wait_start_tick >= tick or self.is_full():
                left_behind = True
                continue
            floor.remove(person.person_id)
            wait = person.record_boarding(tick)
            person.place_in_elevator(self.elevator_id)
            self.passengers[person.person_id] = person
            metrics.record_wait(person.person_id, wait)
            result.boarded.append(person.person_id)
            self.assign_target(person.destination, ready_at=tick)
            logger.debug("tick %d: person %d boards %s after %d ticks", tick, person.person_id, self.name, wait)

        if left_behind:
            self.assign_target(floor_number, ready_at=tick + 1)

    def _return_to_rest(self, tick: int) -> None:
        if self.resting_floor is None or self.resting_floor == self.current_floor:
            return
        self.assign_target(self.resting_floor, ready_at=tick)

    def _check_floor(self, floor: int) -> None:
        if not 0 <= floor < self.floor_count:
            raise InvalidFloor(floor, self.floor_count)
