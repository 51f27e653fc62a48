from types import SimpleNamespace

import pytest

from towersim import (
    Building,
    BuildingConfig,
    DoorConfig,
    ElevatorConfig,
    Floor,
    MetricsAggregator,
    TransitionDistribution,
)


def lobby_kwargs(arrival_probability=1.0, seed=1):
    """Ground floor plus one upper floor, one car, one door."""
    return dict(
        floor_count=2,
        elevator_configs=[ElevatorConfig(energy_up=2.0, energy_down=1.0)],
        door_configs=[DoorConfig(name="main", arrival_probability=arrival_probability)],
        transition_distributions=[
            TransitionDistribution(leave=1.0),
            TransitionDistribution(stay=1.0),
        ],
        seed=seed,
    )


def office_config(seed=11, arrival=0.35):
    """Five floors, two cars, two doors, residents moving about."""
    return BuildingConfig(
        floor_count=5,
        elevators=[
            ElevatorConfig(name="A", position=(0.0, 0.0), energy_up=2.0, energy_down=0.5,
                           energy_per_passenger=0.1, capacity=4, resting_floor=0),
            ElevatorConfig(name="B", position=(5.0, 0.0), energy_up=1.5, energy_down=0.75),
        ],
        doors=[
            DoorConfig(name="north", position=(0.0, 3.0), arrival_probability=arrival),
            DoorConfig(name="south", position=(5.0, -3.0), arrival_probability=arrival / 2,
                       weighting="exponential", weighting_options={"scale": 3.0}),
        ],
        transitions=[
            TransitionDistribution(stay=0.3, destinations={2: 0.1}, leave=0.6),
            TransitionDistribution(stay=0.8, destinations={0: 0.15, 3: 0.05}),
            TransitionDistribution(stay=0.8, destinations={0: 0.1, 4: 0.1}),
            TransitionDistribution(stay=0.85, destinations={0: 0.1, 1: 0.05}),
            TransitionDistribution(stay=0.8, destinations={0: 0.2}),
        ],
        seed=seed,
        arrival_destinations={1: 1.0, 2: 1.0, 3: 2.0, 4: 1.0},
    )


# Policy settings whose weight is exactly 0.0 at 40 floors or more.
FAR_POLICIES = [
    ("gaussian", {}),
    ("exponential", {"scale": 0.05}),
    ("inverse", {"power": 400.0}),
]


@pytest.fixture
def lobby():
    return Building(**lobby_kwargs())


@pytest.fixture
def office():
    return Building.from_config(office_config())


@pytest.fixture
def tower():
    """Bare floors and a metrics sink for driving a single elevator by hand."""
    floors = [Floor(number, 4) for number in range(4)]
    return SimpleNamespace(floors=floors, metrics=MetricsAggregator())


def run_elevator(elevator, tower, ticks):
    results = []
    for tick in ticks:
        tower.metrics.begin_tick(tick)
        results.append(elevator.step(tower, tick, tower.metrics))
        tower.metrics.commit()
    return results
