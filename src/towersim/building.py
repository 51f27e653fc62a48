from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from dispatch import WeightingPolicy, get_policy, nearest_fallback

from .config import BuildingConfig, DoorConfig, ElevatorConfig, TransitionDistribution
from .door import Door
from .elevator import Elevator, ElevatorStepResult
from .errors import InvalidConfiguration, InvalidFloor, InvalidTransition, SimulationError
from .floor import Floor, Leave, RequestFloor
from .metrics import Metrics, MetricsAggregator
from .person import Person
from .probability import ProbabilityModel, validate_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestRecord:
    person_id: int
    elevator_id: int
    from_floor: int
    target_floor: int


@dataclass(frozen=True)
class TickReport:
    """Everything observable that happened during one tick."""

    tick: int
    arrivals: Tuple[int, ...]
    departures: Tuple[int, ...]
    requests: Tuple[RequestRecord, ...]
    boardings: Tuple[int, ...]
    alightings: Tuple[int, ...]
    energy_delta: float
    energy_by_elevator: Tuple[Tuple[str, float], ...]
    wait_samples: Tuple[int, ...]
    population: int


@dataclass(frozen=True)
class RunSummary:
    ticks_run: int
    final_tick: int
    arrivals: int
    departures: int
    boardings: int
    drained: bool
    metrics: Metrics


class Building:
    """Owns floors, elevators and doors, and advances them one tick at a time.

    Each tick runs five phases in a fixed order: arrivals, dispatch of
    ground-floor callers, elevator steps, upper-floor transitions and
    ground-floor exits. Metrics for the tick are committed at the end.
    """

    def __init__(
        self,
        floor_count: int,
        elevator_configs: Sequence[ElevatorConfig],
        door_configs: Sequence[DoorConfig],
        transition_distributions: Sequence[TransitionDistribution],
        seed: Optional[int] = None,
        arrival_destinations: Optional[Dict[int, float]] = None,
        dispatch: str = "inverse",
        dispatch_options: Optional[Dict[str, float]] = None,
    ) -> None:
        if floor_count <= 0:
            raise InvalidConfiguration(f"a building needs at least one floor, got {floor_count}")
        if not elevator_configs:
            raise InvalidConfiguration("a building needs at least one elevator")
        if not door_configs:
            raise InvalidConfiguration("a building needs at least one door")
        if len(transition_distributions) != floor_count:
            raise InvalidConfiguration(
                f"expected {floor_count} transition distributions, got {len(transition_distributions)}"
            )

        self.floor_count = floor_count
        self.floors: List[Floor] = [
            Floor(number, floor_count, distribution)
            for number, distribution in enumerate(transition_distributions)
        ]
        self.elevators: List[Elevator] = [
            Elevator.from_config(index, floor_count, cfg) for index, cfg in enumerate(elevator_configs)
        ]
        self.doors: List[Door] = [Door.from_config(cfg) for cfg in door_configs]
        _require_unique("elevator", [e.name for e in self.elevators])
        _require_unique("door", [d.name for d in self.doors])
        self._doors_by_name: Dict[str, Door] = {door.name: door for door in self.doors}
        for door in self.doors:
            # Surface dimension mismatches before the first tick.
            validate_weights(door.elevator_weights(self.elevators))

        try:
            self.dispatch_policy: WeightingPolicy = get_policy(dispatch, **(dispatch_options or {}))
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"dispatch policy: {exc}") from exc

        self.arrival_floors, self.arrival_weights = self._arrival_distribution(arrival_destinations)
        self.model = ProbabilityModel(seed)
        self.metrics = MetricsAggregator(e.name for e in self.elevators)
        self.current_tick = 0
        self._next_person_id = 0

    @classmethod
    def from_config(cls, config: BuildingConfig) -> "Building":
        return cls(
            floor_count=config.floor_count,
            elevator_configs=config.elevators,
            door_configs=config.doors,
            transition_distributions=config.transitions,
            seed=config.seed,
            arrival_destinations=config.arrival_destinations,
            dispatch=config.dispatch,
            dispatch_options=config.dispatch_options,
        )

    @property
    def ground(self) -> Floor:
        return self.floors[0]

    def tick(self) -> TickReport:
        tick = self.current_tick
        self.metrics.begin_tick(tick)

        arrivals = self._arrival_phase(tick)
        requests = self._dispatch_phase(tick)
        steps: List[ElevatorStepResult] = [
            elevator.step(self, tick, self.metrics) for elevator in self.elevators
        ]
        requests.extend(self._transition_phase(tick))
        departures = self._exit_phase(tick)

        tick_metrics = self.metrics.commit()
        self.current_tick += 1
        return TickReport(
            tick=tick,
            arrivals=tuple(arrivals),
            departures=tuple(departures),
            requests=tuple(requests),
            boardings=tuple(pid for step in steps for pid in step.boarded),
            alightings=tuple(pid for step in steps for pid in step.alighted),
            energy_delta=tick_metrics.energy_delta,
            energy_by_elevator=tick_metrics.energy_by_elevator,
            wait_samples=tick_metrics.wait_samples,
            population=self.population(),
        )

    def run(self, n_ticks: int, drain: bool = False) -> RunSummary:
        """Advance ``n_ticks`` ticks, or fewer if ``drain`` and the building empties."""
        if n_ticks < 0:
            raise ValueError(f"n_ticks must be non-negative, got {n_ticks}")
        logger.info(
            "running %d ticks from tick %d (seed=%s, drain=%s)",
            n_ticks, self.current_tick, self.model.seed, drain,
        )
        arrivals = departures = boardings = ticks_run = 0
        drained = False
        try:
            for _ in range(n_ticks):
                report = self.tick()
                ticks_run += 1
                arrivals += len(report.arrivals)
                departures += len(report.departures)
                boardings += len(report.boardings)
                if drain and self.is_drained():
                    drained = True
                    break
        except SimulationError:
            logger.error("run aborted at tick %d", self.current_tick, exc_info=True)
            raise

        summary = RunSummary(
            ticks_run=ticks_run,
            final_tick=self.current_tick,
            arrivals=arrivals,
            departures=departures,
            boardings=boardings,
            drained=drained,
            metrics=self.metrics.snapshot(),
        )
        logger.info(
            "finished after %d ticks: energy=%.3f mean_wait=%.3f samples=%d",
            ticks_run,
            summary.metrics.total_energy,
            summary.metrics.mean_wait_time,
            summary.metrics.sample_count,
        )
        return summary

    def spawn_person(self, floor: int, destination: int, elevator_id: Optional[int] = None) -> Person:
        """Place a caller on ``floor`` and issue its request right away.

        This is the entry point for requests coming from outside the engine.
        An ``InvalidFloor`` leaves the building untouched.
        """
        for value in (floor, destination):
            if not 0 <= value < self.floor_count:
                raise InvalidFloor(value, self.floor_count)
        if floor == destination:
            raise InvalidFloor(destination, self.floor_count, f"request from floor {floor} to itself")
        if elevator_id is None:
            elevator = self._choose_elevator_for_floor(floor)
        elif 0 <= elevator_id < len(self.elevators):
            elevator = self.elevators[elevator_id]
        else:
            raise InvalidConfiguration(f"no elevator with id {elevator_id}")
        person = Person(self._next_person_id)
        elevator.request(floor, destination, self.current_tick, person=person)
        self._next_person_id += 1
        self.floors[floor].admit(person)
        person.settled_tick = self.current_tick
        return person

    def population(self) -> int:
        return sum(len(f.residents) for f in self.floors) + sum(len(e.passengers) for e in self.elevators)

    def is_drained(self) -> bool:
        return self.population() == 0 and all(e.is_idle() for e in self.elevators)

    def snapshot(self) -> dict:
        return {
            "tick": self.current_tick,
            "floors": [len(floor.residents) for floor in self.floors],
            "elevators": [
                {
                    "id": elevator.elevator_id,
                    "name": elevator.name,
                    "floor": elevator.current_floor,
                    "targets": list(elevator.target_queue),
                    "passenger_count": len(elevator.passengers),
                    "energy": elevator.cumulative_energy,
                }
                for elevator in self.elevators
            ],
        }

    def _arrival_phase(self, tick: int) -> List[int]:
        arrivals: List[int] = []
        for door in self.doors:
            if not self.model.sample_bernoulli(door.arrival_probability):
                continue
            person = Person(self._next_person_id, door=door.name, settled_tick=tick)
            self._next_person_id += 1
            self.ground.admit(person)
            if self.arrival_floors:
                person.destination = self.arrival_floors[self.model.sample_categorical(self.arrival_weights)]
            arrivals.append(person.person_id)
            logger.debug("tick %d: person %d enters through %s", tick, person.person_id, door.name)
        return arrivals

    def _dispatch_phase(self, tick: int) -> List[RequestRecord]:
        requests: List[RequestRecord] = []
        for person in self.ground.awaiting_dispatch():
            door = self._doors_by_name[person.door] if person.door else self.doors[0]
            index = self.model.sample_categorical(door.elevator_weights(self.elevators))
            requests.append(self._request(self.elevators[index], person, 0, person.destination, tick))
        return requests

    def _transition_phase(self, tick: int) -> List[RequestRecord]:
        requests: List[RequestRecord] = []
        for floor in self.floors[1:]:
            for person in floor.idle_residents(tick):
                transition = floor.sample_transition(person, self.model)
                if isinstance(transition, Leave):
                    raise InvalidTransition(f"person {person.person_id} sampled Leave on floor {floor.number}")
                if isinstance(transition, RequestFloor):
                    elevator = self._choose_elevator_for_floor(floor.number)
                    requests.append(self._request(elevator, person, floor.number, transition.target, tick))
        return requests

    def _exit_phase(self, tick: int) -> List[int]:
        departures: List[int] = []
        for person in self.ground.idle_residents(tick):
            transition = self.ground.sample_transition(person, self.model)
            if isinstance(transition, Leave):
                self.ground.remove(person.person_id)
                departures.append(person.person_id)
                logger.debug("tick %d: person %d leaves the building", tick, person.person_id)
            elif isinstance(transition, RequestFloor):
                # Picked up by the next dispatch phase.
                person.destination = transition.target
        return departures

    def _request(
        self, elevator: Elevator, person: Person, from_floor: int, target: int, tick: int
    ) -> RequestRecord:
        elevator.request(from_floor, target, tick, person=person)
        return RequestRecord(person.person_id, elevator.elevator_id, from_floor, target)

    def _choose_elevator_for_floor(self, floor: int) -> Elevator:
        distances = [abs(elevator.current_floor - floor) for elevator in self.elevators]
        weights = nearest_fallback([self.dispatch_policy.weight(d) for d in distances], distances)
        return self.elevators[self.model.sample_categorical(weights)]

    def _arrival_distribution(self, destinations: Optional[Dict[int, float]]):
        if destinations is None:
            floors = list(range(1, self.floor_count))
            return floors, [1.0] * len(floors)
        floors = sorted(destinations)
        for floor in floors:
            if not 0 < floor < self.floor_count:
                raise InvalidConfiguration(f"arrival destination {floor} must be an upper floor")
        weights = [destinations[floor] for floor in floors]
        if floors:
            validate_weights(weights)
        return floors, weights


def _require_unique(kind: str, names: Sequence[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise InvalidConfiguration(f"duplicate {kind} name '{name}'")
        seen.add(name)
