"""Tests for the stock-take workflow definition and the workflow value objects."""

import pytest

from pos_kernel.domain.workflow import Transition, Workflow
from pos_kernel.exceptions import SessionClosedError
from pos_modules.stock_take.workflows import (
    CANCEL,
    CANCELLED,
    COMPLETED,
    FINALIZE,
    HAS_VARIANCE,
    IN_PROGRESS,
    RECORD_COUNT,
    STOCK_TAKE_WORKFLOW,
    USER_CONFIRMED,
    require_transition,
)


class TestStockTakeWorkflow:

    def test_initial_state(self):
        assert STOCK_TAKE_WORKFLOW.initial_state == IN_PROGRESS

    def test_terminal_states(self):
        assert STOCK_TAKE_WORKFLOW.is_terminal(COMPLETED)
        assert STOCK_TAKE_WORKFLOW.is_terminal(CANCELLED)
        assert not STOCK_TAKE_WORKFLOW.is_terminal(IN_PROGRESS)

    def test_actions_from_open_session(self):
        assert set(STOCK_TAKE_WORKFLOW.actions_from(IN_PROGRESS)) == {
            RECORD_COUNT, FINALIZE, CANCEL,
        }

    @pytest.mark.parametrize("state", [COMPLETED, CANCELLED])
    def test_no_actions_from_terminal(self, state):
        assert STOCK_TAKE_WORKFLOW.actions_from(state) == ()

    def test_finalize_is_guarded_and_mutates_inventory(self):
        transition = STOCK_TAKE_WORKFLOW.find_transition(IN_PROGRESS, FINALIZE)

        assert transition.to_state == COMPLETED
        assert transition.guard == HAS_VARIANCE
        assert transition.mutates_inventory is True

    def test_cancel_requires_confirmation_and_never_mutates_inventory(self):
        transition = STOCK_TAKE_WORKFLOW.find_transition(IN_PROGRESS, CANCEL)

        assert transition.to_state == CANCELLED
        assert transition.guard == USER_CONFIRMED
        assert transition.mutates_inventory is False

    def test_only_finalize_mutates_inventory(self):
        mutating = [t.action for t in STOCK_TAKE_WORKFLOW.transitions if t.mutates_inventory]
        assert mutating == [FINALIZE]


class TestRequireTransition:

    def test_open_session_allows_count(self):
        assert require_transition("st-1", IN_PROGRESS, RECORD_COUNT).action == RECORD_COUNT

    @pytest.mark.parametrize("state", [COMPLETED, CANCELLED])
    @pytest.mark.parametrize("action", [RECORD_COUNT, FINALIZE, CANCEL])
    def test_terminal_session_rejects_everything(self, state, action):
        with pytest.raises(SessionClosedError) as exc_info:
            require_transition("st-1", state, action)

        assert exc_info.value.status == state
        assert exc_info.value.action == action
        assert exc_info.value.code == "SESSION_CLOSED"


class TestWorkflowValidation:

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="w", description="", initial_state="x",
                states=("a",), transitions=(),
            )

    def test_unknown_transition_state(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a",), transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_with_outgoing_transition(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="reopen"),),
                terminal_states=("b",),
            )
