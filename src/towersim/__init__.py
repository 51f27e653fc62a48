"""Stochastic elevator traffic simulation for comparing dispatch and resting policies."""

from .batch import BatchResult, run_batch
from .building import Building, RequestRecord, RunSummary, TickReport
from .config import BuildingConfig, DoorConfig, ElevatorConfig, TransitionDistribution
from .door import Door
from .elevator import Elevator, ElevatorStepResult
from .errors import (
    EmptyElevatorSet,
    InvalidConfiguration,
    InvalidDistribution,
    InvalidFloor,
    InvalidTransition,
    PersonNotFound,
    SimulationError,
)
from .floor import Floor, Leave, RequestFloor, Stay, Transition
from .metrics import Metrics, MetricsAggregator, TickMetrics
from .person import Person
from .probability import ProbabilityModel

__all__ = [
    "BatchResult",
    "Building",
    "BuildingConfig",
    "Door",
    "DoorConfig",
    "Elevator",
    "ElevatorConfig",
    "ElevatorStepResult",
    "EmptyElevatorSet",
    "Floor",
    "InvalidConfiguration",
    "InvalidDistribution",
    "InvalidFloor",
    "InvalidTransition",
    "Leave",
    "Metrics",
    "MetricsAggregator",
    "Person",
    "PersonNotFound",
    "ProbabilityModel",
    "RequestFloor",
    "RequestRecord",
    "RunSummary",
    "SimulationError",
    "Stay",
    "TickMetrics",
    "TickReport",
    "Transition",
    "TransitionDistribution",
    "run_batch",
]
