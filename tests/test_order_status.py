import pytest
from models.order import OrderStatus
from app.services.order_status import (
    VALID_STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    allowed_transitions,
    can_transition,
)

S = OrderStatus


@pytest.mark.parametrize("current,new", [
    (S.PENDING, S.IN_PREPARATION),
    (S.PENDING, S.CANCELLED),
    (S.IN_PREPARATION, S.READY),
    (S.IN_PREPARATION, S.CANCELLED),
    (S.READY, S.DELIVERED),
    (S.READY, S.CANCELLED),
])
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize("current,new", [
    (S.PENDING, S.READY),
    (S.PENDING, S.DELIVERED),
    (S.IN_PREPARATION, S.PENDING),
    (S.READY, S.IN_PREPARATION),
    (S.DELIVERED, S.CANCELLED),
    (S.CANCELLED, S.PENDING),
])
def test_disallowed_transitions(current, new):
    assert not can_transition(current, new)


@pytest.mark.parametrize("status", S.ALL)
def test_no_self_transitions(status):
    assert not can_transition(status, status)


def test_terminal_statuses_have_no_exits():
    for status in TERMINAL_STATUSES:
        assert allowed_transitions(status) == set()


def test_every_status_has_a_row():
    assert set(VALID_STATUS_TRANSITIONS) == set(S.ALL)


def test_unknown_statuses_are_rejected():
    assert allowed_transitions("SHIPPED") == set()
    assert not can_transition(S.PENDING, "SHIPPED")
    assert not can_transition("SHIPPED", S.CANCELLED)
