from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidTransition


@dataclass
class Person:
    """One occupant, located on exactly one floor or aboard exactly one elevator."""

    person_id: int
    door: Optional[str] = None
    floor: Optional[int] = None
    elevator: Optional[int] = None
    destination: Optional[int] = None
    assigned_elevator: Optional[int] = None
    wait_start_tick: Optional[int] = None
    board_tick: Optional[int] = None
    settled_tick: int = 0
    trips: int = 0

    @property
    def is_riding(self) -> bool:
        return self.elevator is not None

    @property
    def is_waiting(self) -> bool:
        """Requested a car and is standing on a floor until it arrives."""
        return self.assigned_elevator is not None and not self.is_riding

    @property
    def awaiting_dispatch(self) -> bool:
        return self.destination is not None and self.assigned_elevator is None

    @property
    def is_idle(self) -> bool:
        return self.destination is None and not self.is_riding

    def place_on_floor(self, floor: int) -> None:
        self.floor = floor
        self.elevator = None

    def place_in_elevator(self, elevator_id: int) -> None:
        self.elevator = elevator_id
        self.floor = None

    def record_request(self, elevator_id: int, destination: int, tick: int) -> None:
        self.assigned_elevator = elevator_id
        self.destination = destination
        self.wait_start_tick = tick

    def record_boarding(self, tick: int) -> int:
        """Clear the wait clock and return the completed wait in ticks."""
        if self.wait_start_tick is None:
            raise InvalidTransition(f"person {self.person_id} boarded without a pending request")
        wait = tick - self.wait_start_tick
        self.board_tick = tick
        self.wait_start_tick = None
        return wait

    def record_alighting(self, tick: int) -> None:
        self.destination = None
        self.assigned_elevator = None
        self.board_tick = None
        self.settled_tick = tick
        self.trips += 1
