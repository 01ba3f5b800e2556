"""
Unit tests for the order lifecycle transition table.
"""

import pytest

from ordertrack.app.domain.orders.transitions import (
    TRANSITION_TABLE,
    allowed_next,
    is_terminal,
    is_valid_transition,
)
from ordertrack.app.models.order_enums import OrderStatus as S


def test_table_is_total():
    assert set(TRANSITION_TABLE) == set(S)


@pytest.mark.parametrize("status", [S.DELIVERED, S.CANCELLED])
def test_terminal_statuses_have_no_edges(status):
    assert allowed_next(status) == frozenset()
    assert is_terminal(status)


def test_edges():
    assert allowed_next(S.PENDING) == {S.CONFIRMED, S.CANCELLED}
    assert allowed_next(S.CONFIRMED) == {S.PROCESSING, S.CANCELLED}
    assert allowed_next(S.PROCESSING) == {S.SHIPPED, S.ACCEPTED, S.CANCELLED}
    assert allowed_next(S.SHIPPED) == {S.OUT_FOR_DELIVERY, S.CANCELLED}
    assert allowed_next(S.ACCEPTED) == {S.PICKED_UP, S.CANCELLED}
    assert allowed_next(S.PICKED_UP) == {S.OUT_FOR_DELIVERY, S.CANCELLED}
    assert allowed_next(S.OUT_FOR_DELIVERY) == {S.DELIVERED}


def test_out_for_delivery_cannot_be_cancelled():
    assert not is_valid_transition(S.OUT_FOR_DELIVERY, S.CANCELLED)


def test_accepts_plain_strings():
    assert is_valid_transition("PENDING", "CONFIRMED")
    assert not is_valid_transition("PENDING", "SHIPPED")


def test_no_self_loops():
    for status in S:
        assert status not in allowed_next(status)
