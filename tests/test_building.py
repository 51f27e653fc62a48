import dataclasses

import pytest

from conftest import FAR_POLICIES, lobby_kwargs, office_config
from towersim import (
    Building,
    DoorConfig,
    ElevatorConfig,
    InvalidConfiguration,
    InvalidDistribution,
    InvalidFloor,
    InvalidTransition,
    Leave,
    RequestRecord,
    TransitionDistribution,
)


class TestBuildingConfiguration:
    def test_floor_count_must_be_positive(self):
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "floor_count": 0, "transition_distributions": []})

    @pytest.mark.parametrize("key", ["elevator_configs", "door_configs"])
    def test_empty_sets_are_rejected(self, key):
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), key: []})

    def test_one_distribution_per_floor(self):
        kwargs = lobby_kwargs()
        kwargs["transition_distributions"] = kwargs["transition_distributions"][:1]
        with pytest.raises(InvalidConfiguration):
            Building(**kwargs)

    def test_distribution_not_summing_to_one(self):
        kwargs = lobby_kwargs()
        kwargs["transition_distributions"] = [
            TransitionDistribution(leave=0.9),
            TransitionDistribution(stay=1.0),
        ]
        with pytest.raises(InvalidConfiguration) as excinfo:
            Building(**kwargs)
        assert isinstance(excinfo.value, InvalidDistribution)

    def test_out_of_range_floor_references(self):
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "elevator_configs": [ElevatorConfig(start_floor=2)]})
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "arrival_destinations": {2: 1.0}})
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "arrival_destinations": {0: 1.0}})

    def test_names_must_be_unique(self):
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "elevator_configs": [ElevatorConfig(name="A"), ElevatorConfig(name="A")]})
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "door_configs": [DoorConfig(name="d"), DoorConfig(name="d")]})

    def test_unknown_dispatch_policy(self):
        with pytest.raises(InvalidConfiguration):
            Building(**{**lobby_kwargs(), "dispatch": "telepathy"})


class TestLobbyScenario:
    def test_first_rider_reaches_floor_one(self, lobby):
        elevator = lobby.elevators[0]

        first = lobby.tick()
        assert first.tick == 0
        assert first.arrivals == (0,)
        assert first.requests == (RequestRecord(person_id=0, elevator_id=0, from_floor=0, target_floor=1),)
        assert list(elevator.target_queue) == [0, 1]
        assert elevator.current_floor == 0
        assert first.energy_delta == 0.0

        second = lobby.tick()
        assert elevator.current_floor == 1
        assert elevator.cumulative_energy == 2.0
        assert second.boardings == (0,)
        assert second.wait_samples == (1,)
        snapshot = lobby.metrics.snapshot()
        assert snapshot.sample_count == 1
        assert snapshot.mean_wait_time == 1.0
        assert snapshot.total_energy == 2.0
        assert snapshot.per_elevator_energy == {"elevator-0": 2.0}
        assert 0 in lobby.floors[1].residents

    def test_no_arrivals_leaves_the_building_untouched(self):
        building = Building(**lobby_kwargs(arrival_probability=0.0))
        reports = [building.tick() for _ in range(50)]
        assert all(r.arrivals == () and r.requests == () and r.energy_delta == 0.0 for r in reports)
        assert building.population() == 0
        assert building.elevators[0].current_floor == 0
        assert building.elevators[0].cumulative_energy == 0.0
        assert not building.elevators[0].target_queue
        snapshot = building.metrics.snapshot()
        assert snapshot.sample_count == 0
        assert snapshot.total_energy == 0.0

    def test_external_out_of_range_request_is_recoverable(self, lobby):
        lobby.tick()
        elevator = lobby.elevators[0]
        before = list(elevator.target_queue)
        with pytest.raises(InvalidFloor):
            elevator.request(0, lobby.floor_count, tick=lobby.current_tick)
        assert list(elevator.target_queue) == before
        lobby.tick()
        assert elevator.current_floor == 1


class TestTickProperties:
    def test_population_is_conserved(self, office):
        population = 0
        for _ in range(400):
            report = office.tick()
            population += len(report.arrivals) - len(report.departures)
            assert report.population == population == office.population()
        assert office.metrics.snapshot().sample_count > 0

    def test_every_person_has_exactly_one_owner(self, office):
        for _ in range(150):
            office.tick()
            seen = {}
            for floor in office.floors:
                for person_id, person in floor.residents.items():
                    assert person.floor == floor.number and person.elevator is None
                    seen[person_id] = seen.get(person_id, 0) + 1
            for elevator in office.elevators:
                for person_id, person in elevator.passengers.items():
                    assert person.elevator == elevator.elevator_id and person.floor is None
                    seen[person_id] = seen.get(person_id, 0) + 1
            assert all(count == 1 for count in seen.values())

    def test_same_seed_gives_identical_reports(self):
        first = Building.from_config(office_config(seed=99))
        second = Building.from_config(office_config(seed=99))
        assert [first.tick() for _ in range(300)] == [second.tick() for _ in range(300)]

    def test_energy_is_monotonic_and_fully_reported(self, office):
        previous = {e.name: 0.0 for e in office.elevators}
        reported = {e.name: 0.0 for e in office.elevators}
        for _ in range(300):
            report = office.tick()
            for name, delta in report.energy_by_elevator:
                reported[name] += delta
            for elevator in office.elevators:
                assert elevator.cumulative_energy >= previous[elevator.name]
                previous[elevator.name] = elevator.cumulative_energy
        per_elevator = office.metrics.snapshot().per_elevator_energy
        for elevator in office.elevators:
            assert reported[elevator.name] == pytest.approx(elevator.cumulative_energy)
            assert per_elevator[elevator.name] == elevator.cumulative_energy

    def test_wait_samples_match_request_and_boarding_ticks(self, office):
        requested_at = {}
        checked = 0
        for _ in range(300):
            report = office.tick()
            assert len(report.boardings) == len(report.wait_samples)
            for person_id, wait in zip(report.boardings, report.wait_samples):
                assert wait >= 1
                assert wait == report.tick - requested_at.pop(person_id)
                checked += 1
            for request in report.requests:
                requested_at[request.person_id] = report.tick
        assert checked > 0

    def test_runtime_invariant_violations_abort_the_run(self, office):
        office.run(30)
        upper = office.floors[1]
        upper.outcomes = [Leave()]
        upper.weights = [1.0]
        with pytest.raises(InvalidTransition):
            office.run(200)


class TestRun:
    def test_run_summarises_ticks(self, office):
        summary = office.run(120)
        assert summary.ticks_run == 120
        assert summary.final_tick == 120
        assert summary.drained is False
        assert summary.arrivals - summary.departures == office.population()
        assert summary.metrics == office.metrics.snapshot()

    def test_drain_stops_once_the_building_is_empty(self):
        kwargs = lobby_kwargs(arrival_probability=0.0)
        kwargs["transition_distributions"] = [
            TransitionDistribution(leave=1.0),
            TransitionDistribution(destinations={0: 1.0}),
        ]
        building = Building(**kwargs)
        person = building.spawn_person(0, 1)
        assert person.wait_start_tick == 0

        summary = building.run(1000, drain=True)
        assert summary.drained is True
        assert summary.ticks_run == 5
        assert summary.departures == 1
        assert summary.boardings == 2
        assert building.is_drained()

    def test_drain_on_an_empty_building_stops_after_one_tick(self):
        summary = Building(**lobby_kwargs(arrival_probability=0.0)).run(50, drain=True)
        assert summary.ticks_run == 1
        assert summary.drained is True

    def test_single_floor_building_never_arrives_and_leaves_in_one_tick(self):
        building = Building(
            floor_count=1,
            elevator_configs=[ElevatorConfig()],
            door_configs=[DoorConfig(name="main", arrival_probability=1.0)],
            transition_distributions=[TransitionDistribution(leave=1.0)],
            seed=3,
        )
        first = building.tick()
        assert first.arrivals == (0,) and first.departures == ()
        second = building.tick()
        assert second.arrivals == (1,) and second.departures == (0,)
        assert building.population() == 1
        assert building.elevators[0].cumulative_energy == 0.0

    def test_spawn_rejects_bad_floors_without_side_effects(self, lobby):
        draws = lobby.model.draws
        with pytest.raises(InvalidFloor):
            lobby.spawn_person(0, 5)
        with pytest.raises(InvalidFloor):
            lobby.spawn_person(1, 1)
        assert lobby.population() == 0
        assert not lobby.elevators[0].target_queue
        assert lobby.model.draws == draws

    def test_resting_policy_costs_energy(self):
        config = office_config(arrival=0.0)
        config.elevators[0] = dataclasses.replace(config.elevators[0], start_floor=3)
        building = Building.from_config(config)
        building.run(10)
        assert building.elevators[0].current_floor == 0
        assert building.elevators[0].cumulative_energy == pytest.approx(3 * 0.5)
        assert building.elevators[1].cumulative_energy == 0.0


def tall_kwargs(weighting, options, elevator_configs):
    """Fifty floors; the only resident activity is floor 45 heading home."""
    transitions = [TransitionDistribution(leave=1.0)]
    transitions += [TransitionDistribution(stay=1.0) for _ in range(1, 50)]
    transitions[45] = TransitionDistribution(stay=0.99, destinations={0: 0.01})
    return dict(
        floor_count=50,
        elevator_configs=elevator_configs,
        door_configs=[DoorConfig(name="main", arrival_probability=0.0)],
        transition_distributions=transitions,
        seed=8,
        dispatch=weighting,
        dispatch_options=options,
    )


@pytest.mark.parametrize("weighting,options", FAR_POLICIES)
class TestFarCalls:
    def test_call_beyond_every_weight_goes_to_the_nearest_car(self, weighting, options):
        building = Building(
            **tall_kwargs(weighting, options, [ElevatorConfig(name="A"), ElevatorConfig(name="B", start_floor=5)])
        )
        person = building.spawn_person(45, 0)
        assert person.assigned_elevator == 1
        assert list(building.elevators[1].target_queue) == [45, 0]
        assert not building.elevators[0].target_queue

    def test_resident_far_from_a_resting_car_still_gets_home(self, weighting, options):
        building = Building(**tall_kwargs(weighting, options, [ElevatorConfig(resting_floor=0)]))
        building.spawn_person(0, 45)
        summary = building.run(5000, drain=True)
        assert summary.drained is True
        assert summary.boardings == 2
        assert summary.departures == 1
