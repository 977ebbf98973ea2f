from __future__ import annotations

import pytest

from simulation import (
    Direction,
    InvalidArgument,
    LiftStatus,
    RequestState,
    RunStatus,
    Unsupported,
)
from simulation.engine import SimulationEngine

from conftest import make_definition


def run_trace(engine, ticks):
    return [engine.step() for _ in range(ticks)]


def test_single_hall_call_example(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    trace = run_trace(engine, 11)
    lift = [snapshot.lifts[0] for snapshot in trace]

    assert [snapshot.tick for snapshot in trace] == list(range(1, 12))
    assert [l.floor for l in lift[:5]] == [1, 2, 3, 4, 5]
    assert all(l.status is LiftStatus.MOVING_UP for l in lift[:5])
    assert [l.status for l in lift[5:]] == [
        LiftStatus.IDLE,
        LiftStatus.DOORS_OPENING,
        LiftStatus.DOORS_OPEN,
        LiftStatus.DOORS_OPEN,
        LiftStatus.DOORS_CLOSING,
        LiftStatus.IDLE,
    ]
    assert trace[0].delivered == (1,)
    assert trace[7].completed == (1,)
    assert lift[7].door_open and lift[7].floor == 5

    request = engine.history[0]
    assert request.state is RequestState.COMPLETED
    assert request.history == [
        (0, RequestState.QUEUED),
        (0, RequestState.ASSIGNED),
        (6, RequestState.SERVING),
        (7, RequestState.COMPLETED),
    ]


def test_run_report(single_call_scenario):
    report = SimulationEngine(single_call_scenario).run()
    assert report.status is RunStatus.COMPLETED
    assert report.ticks_executed == report.total_ticks == 20
    assert [r.state for r in report.requests] == [RequestState.COMPLETED]
    data = report.to_dict()
    assert data["scenario"] == "Test scenario"
    assert data["strategy"] == "NEAREST_REQUEST_ROUTING"
    assert data["requests"][0]["alias"] == "p1"


def test_runs_are_deterministic():
    definition = make_definition(
        ticks=60,
        events=[(0, "a", 7, "DOWN"), (3, "b", 2, "UP"), (3, "c", 9, "DOWN"), (12, "d", 0, "UP")],
    )
    first = SimulationEngine(definition).run().to_dict()
    second = SimulationEngine(definition).run().to_dict()
    assert first == second


def test_reset_replays_same_run(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    first = engine.run().to_dict()
    engine.reset()
    assert engine.current_tick == 0
    assert engine.run().to_dict() == first


def test_unfinished_requests_are_cancelled_at_end():
    definition = make_definition(ticks=3, events=[(0, "far", 9, "DOWN")])
    cancelled = []
    engine = SimulationEngine(definition)
    engine.on_event("request_cancelled", cancelled.append)
    report = engine.run()
    assert all(request.terminal for request in report.requests)
    assert report.requests[0].state is RequestState.CANCELLED
    assert [request.alias for request in cancelled] == ["far"]


def test_two_calls_at_one_floor_complete_together():
    definition = make_definition(events=[(0, "p1", 3, "UP"), (0, "p2", 3, "DOWN")])
    engine = SimulationEngine(definition)
    trace = run_trace(engine, 6)
    assert trace[5].completed == (1, 2)


def test_call_at_open_doors_completes_immediately():
    engine = SimulationEngine(make_definition(events=[(0, "p1", 0, "UP"), (2, "p2", 0, "DOWN")]))
    trace = run_trace(engine, 3)
    assert trace[1].lifts[0].status is LiftStatus.DOORS_OPEN
    assert trace[1].completed == (1,)
    assert trace[2].completed == (2,)


def test_cancellation_hook_stops_at_tick_boundary(single_call_scenario):
    checked = []

    def stop_at_three(tick):
        checked.append(tick)
        return tick >= 3

    report = SimulationEngine(single_call_scenario, cancellation_check=stop_at_three).run()
    assert report.status is RunStatus.CANCELLED
    assert report.ticks_executed == 3
    assert checked == [0, 1, 2, 3]
    assert report.requests[0].state is RequestState.CANCELLED


def test_out_of_service_releases_assignment(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    run_trace(engine, 2)
    request = engine.history[0]
    assert request.state is RequestState.ASSIGNED

    engine.take_out_of_service(0)
    assert request.state is RequestState.QUEUED
    assert request.assigned_lift is None
    snapshot = engine.step()
    assert snapshot.lifts[0].status is LiftStatus.OUT_OF_SERVICE
    assert snapshot.lifts[0].floor == 2

    engine.return_to_service(0)
    snapshot = engine.step()
    assert snapshot.lifts[0].status is LiftStatus.MOVING_UP
    assert request.state is RequestState.ASSIGNED


def test_out_of_service_cancels_boarding_requests(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    run_trace(engine, 7)
    request = engine.history[0]
    assert request.state is RequestState.SERVING
    engine.take_out_of_service(0)
    assert request.state is RequestState.CANCELLED


def test_return_to_service_requires_out_of_service(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    with pytest.raises(InvalidArgument):
        engine.return_to_service(0)
    with pytest.raises(InvalidArgument):
        engine.take_out_of_service(4)


def test_direct_requests_and_cancellation():
    engine = SimulationEngine(make_definition())
    car = engine.add_car_call(0, 4, alias="inside")
    hall = engine.add_hall_call(8, Direction.DOWN)
    assert (car.request_id, hall.request_id) == (1, 2)
    assert engine.cancel_request(hall.request_id)
    assert not engine.cancel_request(hall.request_id)
    assert hall.state is RequestState.CANCELLED

    trace = run_trace(engine, 7)
    assert trace[-1].completed == (car.request_id,)
    assert trace[-1].lifts[0].floor == 4


def test_cancel_alias():
    engine = SimulationEngine(make_definition(events=[(0, "p1", 7, "DOWN")]))
    engine.step()
    assert engine.cancel_alias("p1")
    assert engine.history[0].state is RequestState.CANCELLED
    with pytest.raises(InvalidArgument):
        engine.cancel_alias("missing")


def test_request_outside_building_rejected():
    engine = SimulationEngine(make_definition())
    with pytest.raises(InvalidArgument):
        engine.add_hall_call(12, Direction.DOWN)


def test_directional_scan_fails_before_first_tick(single_call_scenario):
    with pytest.raises(Unsupported):
        SimulationEngine(single_call_scenario, controller_strategy="DIRECTIONAL_SCAN")


def test_strategy_override_must_be_known(single_call_scenario):
    with pytest.raises(InvalidArgument):
        SimulationEngine(single_call_scenario, idle_parking_mode="SOMEWHERE")


def test_park_to_home_floor_moves_one_floor_per_tick():
    definition = make_definition(
        initial_floor=3, idle_timeout_ticks=2, idle_parking_mode="PARK_TO_HOME_FLOOR"
    )
    trace = run_trace(SimulationEngine(definition), 8)
    assert [snapshot.lifts[0].floor for snapshot in trace] == [3, 3, 2, 1, 0, 0, 0, 0]
    assert trace[-1].lifts[0].status is LiftStatus.IDLE


def test_stay_at_current_floor_never_moves():
    definition = make_definition(initial_floor=3, idle_timeout_ticks=0)
    trace = run_trace(SimulationEngine(definition), 10)
    assert {snapshot.lifts[0].floor for snapshot in trace} == {3}


def test_lifts_scheduled_independently_in_index_order():
    definition = make_definition(events=[(0, "p1", 8, "DOWN")])
    engine = SimulationEngine(definition, lift_count=2, initial_floors=[0, 9])
    snapshot = engine.step()
    assert engine.history[0].assigned_lift == 0
    assert snapshot.lifts[0].status is LiftStatus.MOVING_UP
    assert snapshot.lifts[1].status is LiftStatus.IDLE
    assert snapshot.lifts[1].floor == 9


def test_initial_floors_must_match_lift_count(single_call_scenario):
    with pytest.raises(InvalidArgument):
        SimulationEngine(single_call_scenario, lift_count=2, initial_floors=[0])
    with pytest.raises(InvalidArgument):
        SimulationEngine(single_call_scenario, lift_count=0)


def test_engines_do_not_share_request_ids(single_call_scenario):
    first = SimulationEngine(single_call_scenario)
    second = SimulationEngine(single_call_scenario)
    first.step()
    second.step()
    assert first.history[0].request_id == second.history[0].request_id == 1


def test_tick_hook_receives_every_snapshot(single_call_scenario):
    engine = SimulationEngine(single_call_scenario)
    ticks = []
    engine.on_event("tick", lambda snapshot: ticks.append(snapshot.tick))
    engine.run()
    assert ticks == list(range(1, 21))


def test_cancel_alias_for_direct_requests():
    engine = SimulationEngine(make_definition())
    request = engine.add_car_call(2, 6, alias="inside")
    assert engine.resolve_alias("inside") == request.request_id
    assert engine.cancel_alias("inside")
    assert request.state is RequestState.CANCELLED


def test_direct_request_alias_must_be_unique():
    engine = SimulationEngine(make_definition(events=[(0, "p1", 7, "DOWN")]))
    engine.step()
    with pytest.raises(InvalidArgument) as excinfo:
        engine.add_hall_call(3, Direction.UP, alias="p1")
    assert excinfo.value.field == "alias"
