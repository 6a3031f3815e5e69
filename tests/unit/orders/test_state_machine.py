"""Unit tests for the finalization state machine table."""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    SUBMITTABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    FinalizationState,
)

pytestmark = pytest.mark.unit

S = FinalizationState


def test_every_state_has_an_entry():
    assert set(VALID_TRANSITIONS) == set(FinalizationState)


@pytest.mark.parametrize(
    "source,target",
    [
        (S.DRAFT, S.LINES_RESOLVED),
        (S.LINES_RESOLVED, S.PAYMENT_VALIDATED),
        (S.PAYMENT_VALIDATED, S.INVENTORY_CHECKED),
        (S.INVENTORY_CHECKED, S.READY_TO_SUBMIT),
        (S.INVENTORY_CHECKED, S.AWAITING_CONFIRMATION),
        (S.READY_TO_SUBMIT, S.SUBMITTED),
        (S.AWAITING_CONFIRMATION, S.SUBMITTED),
    ],
)
def test_forward_path(source, target):
    assert target in VALID_TRANSITIONS[source]


@pytest.mark.parametrize(
    "source,target",
    [
        (S.DRAFT, S.SUBMITTED),
        (S.DRAFT, S.READY_TO_SUBMIT),
        (S.LINES_RESOLVED, S.INVENTORY_CHECKED),
        (S.AWAITING_CONFIRMATION, S.DRAFT),
        (S.AWAITING_CONFIRMATION, S.READY_TO_SUBMIT),
        (S.SUBMITTED, S.ABORTED),
    ],
)
def test_skips_and_reversals_are_rejected(source, target):
    assert target not in VALID_TRANSITIONS[source]


def test_abort_is_reachable_before_submission():
    for state in set(FinalizationState) - TERMINAL_STATES:
        assert S.ABORTED in VALID_TRANSITIONS[state]


def test_terminal_states_have_no_exits():
    for state in TERMINAL_STATES:
        assert VALID_TRANSITIONS[state] == set()


def test_submittable_states():
    assert SUBMITTABLE_STATES == {S.READY_TO_SUBMIT, S.AWAITING_CONFIRMATION}
