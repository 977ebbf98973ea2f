from __future__ import annotations

import pytest

from simulation import Direction, InvalidArgument, InvalidTransition, RequestFactory, RequestState, RequestType


def test_factory_ids_are_per_instance():
    first, second = RequestFactory(), RequestFactory()
    assert first.hall_call(3, Direction.UP).request_id == 1
    assert first.hall_call(4, Direction.DOWN).request_id == 2
    assert second.hall_call(3, Direction.UP).request_id == 1
    first.reset()
    assert first.car_call(0, 4).request_id == 1


def test_hall_call_targets_origin_and_car_call_targets_destination():
    factory = RequestFactory()
    hall = factory.hall_call(3, Direction.DOWN, alias="p1")
    car = factory.car_call(3, 7)
    assert hall.type is RequestType.HALL_CALL
    assert hall.target_floor == 3
    assert car.type is RequestType.CAR_CALL
    assert car.target_floor == 7
    assert car.direction is Direction.UP


def test_hall_call_needs_direction():
    with pytest.raises(InvalidArgument):
        RequestFactory().hall_call(3, Direction.IDLE)


def test_car_call_to_same_floor_rejected():
    with pytest.raises(InvalidArgument) as excinfo:
        RequestFactory().car_call(4, 4)
    assert excinfo.value.field == "destination_floor"


def test_happy_path_records_history():
    request = RequestFactory().hall_call(2, Direction.UP)
    for tick, state in enumerate(
        [RequestState.QUEUED, RequestState.ASSIGNED, RequestState.SERVING, RequestState.COMPLETED]
    ):
        request.transition_to(state, tick)
    assert request.terminal
    assert [state for _, state in request.history][-1] is RequestState.COMPLETED
    assert request.to_dict()["state"] == "COMPLETED"


def test_assigned_request_can_return_to_queue():
    request = RequestFactory().hall_call(2, Direction.UP)
    request.transition_to(RequestState.QUEUED).transition_to(RequestState.ASSIGNED)
    request.transition_to(RequestState.QUEUED)
    assert request.state is RequestState.QUEUED


@pytest.mark.parametrize("terminal", [RequestState.COMPLETED, RequestState.CANCELLED])
def test_terminal_states_are_final(terminal):
    request = RequestFactory().hall_call(2, Direction.UP)
    request.state = terminal
    for state in RequestState:
        assert not request.can_transition_to(state)
    with pytest.raises(InvalidTransition):
        request.transition_to(RequestState.QUEUED)


def test_cannot_skip_to_serving():
    request = RequestFactory().hall_call(2, Direction.UP)
    request.transition_to(RequestState.QUEUED)
    with pytest.raises(InvalidTransition) as excinfo:
        request.transition_to(RequestState.SERVING, tick=9)
    assert excinfo.value.tick == 9
    assert request.state is RequestState.QUEUED
