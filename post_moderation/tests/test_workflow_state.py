"""Pure state-machine tests: transitions, thresholds, next-step lookup (no DB)."""
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.errors import IllegalTransitionError, InvalidRequestError
from app.models.enums import AssignmentStatus, WorkflowAction
from app.services.workflow_state import (
    approval_threshold,
    count_step_approvals,
    ensure_transition,
    find_next_step,
    parse_action,
    parse_bulk_decision,
    plan_transition,
)

NOW = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


def _step(order: int, min_approvals: int = 1, is_optional: bool = False):
    return SimpleNamespace(id=uuid.uuid4(), step_order=order, min_approvals=min_approvals, is_optional=is_optional)


def test_parse_action_accepts_hyphenated_and_rejects_unknown() -> None:
    assert parse_action("request-changes") is WorkflowAction.REQUEST_CHANGES
    assert parse_action("approve") is WorkflowAction.APPROVE
    with pytest.raises(InvalidRequestError) as exc:
        parse_action("escalate")
    assert str(exc.value) == "invalid_action"


def test_parse_bulk_decision_rejects_request_changes() -> None:
    with pytest.raises(InvalidRequestError) as exc:
        parse_bulk_decision("request_changes")
    assert exc.value.code == "invalid_decision"


@pytest.mark.parametrize(
    "target",
    [
        AssignmentStatus.PENDING,
        AssignmentStatus.COMPLETED,
        AssignmentStatus.REJECTED,
        AssignmentStatus.CHANGES_REQUESTED,
    ],
)
def test_pending_can_move_to_any_status(target: AssignmentStatus) -> None:
    ensure_transition(AssignmentStatus.PENDING, target)


@pytest.mark.parametrize(
    "terminal",
    [AssignmentStatus.COMPLETED, AssignmentStatus.REJECTED, AssignmentStatus.CHANGES_REQUESTED],
)
def test_terminal_statuses_have_no_outgoing_edges(terminal: AssignmentStatus) -> None:
    with pytest.raises(IllegalTransitionError):
        ensure_transition(terminal, AssignmentStatus.PENDING)


def test_threshold_optional_step_needs_one() -> None:
    assert approval_threshold(_step(1, min_approvals=3, is_optional=True)) == 1
    assert approval_threshold(_step(1, min_approvals=3)) == 3


def test_count_step_approvals_counts_distinct_actors() -> None:
    s = _step(1)
    history = [
        {"step_id": str(s.id), "action": "approve", "actor_id": "a"},
        {"step_id": str(s.id), "action": "approve", "actor_id": "a"},
        {"step_id": str(s.id), "action": "reject", "actor_id": "b"},
        {"step_id": str(uuid.uuid4()), "action": "approve", "actor_id": "c"},
    ]
    assert count_step_approvals(history, s.id) == 1


def test_find_next_step_skips_gaps_in_order() -> None:
    first, third, tenth = _step(1), _step(3), _step(10)
    assert find_next_step([tenth, first, third], first) is third
    assert find_next_step([first, third, tenth], tenth) is None


def test_plan_approve_below_threshold_stays_on_step() -> None:
    s1, s2 = _step(1, min_approvals=2), _step(2)
    t = plan_transition("pending", [s1, s2], s1, [], WorkflowAction.APPROVE, "rev-1", NOW)
    assert t.status is AssignmentStatus.PENDING
    assert t.current_step_id == s1.id
    assert not t.advanced
    assert t.approvals_on_step == 1
    assert t.step_history[-1] == {
        "step_id": str(s1.id),
        "action": "approve",
        "actor_id": "rev-1",
        "timestamp": NOW.isoformat(),
    }


def test_plan_approve_on_last_step_completes() -> None:
    s1 = _step(1)
    t = plan_transition("pending", [s1], s1, [], WorkflowAction.APPROVE, "rev-1", NOW)
    assert t.status is AssignmentStatus.COMPLETED
    assert t.is_terminal
    assert t.next_step is None


def test_plan_reject_and_request_changes_are_recorded_in_history() -> None:
    s1 = _step(1)
    rejected = plan_transition("pending", [s1], s1, [], WorkflowAction.REJECT, "rev-1", NOW)
    assert rejected.status is AssignmentStatus.REJECTED
    assert rejected.step_history[-1]["action"] == "reject"
    changes = plan_transition("pending", [s1], s1, [], WorkflowAction.REQUEST_CHANGES, "rev-1", NOW)
    assert changes.status is AssignmentStatus.CHANGES_REQUESTED


def test_plan_from_terminal_status_is_illegal() -> None:
    s1 = _step(1)
    with pytest.raises(IllegalTransitionError):
        plan_transition("completed", [s1], s1, [], WorkflowAction.APPROVE, "rev-1", NOW)
