"""
Approval state machine (pure logic, không I/O).

Edges hợp lệ: pending -> pending | completed | rejected | changes_requested.
Mọi trạng thái khác pending là terminal.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Union
from uuid import UUID

from app.errors import IllegalTransitionError, InvalidRequestError
from app.models.enums import AssignmentStatus, BulkDecision, HistoryAction, WorkflowAction

ALLOWED_TRANSITIONS: Dict[AssignmentStatus, FrozenSet[AssignmentStatus]] = {
    AssignmentStatus.PENDING: frozenset(
        {
            AssignmentStatus.PENDING,
            AssignmentStatus.COMPLETED,
            AssignmentStatus.REJECTED,
            AssignmentStatus.CHANGES_REQUESTED,
        }
    ),
    AssignmentStatus.APPROVED: frozenset(),
    AssignmentStatus.REJECTED: frozenset(),
    AssignmentStatus.CHANGES_REQUESTED: frozenset(),
    AssignmentStatus.COMPLETED: frozenset(),
}

ACTION_TO_HISTORY: Dict[WorkflowAction, HistoryAction] = {
    WorkflowAction.APPROVE: HistoryAction.APPROVED,
    WorkflowAction.REJECT: HistoryAction.REJECTED,
    WorkflowAction.REQUEST_CHANGES: HistoryAction.REVISION_REQUESTED,
}


def parse_action(value: Union[str, WorkflowAction, None]) -> WorkflowAction:
    """'approve' | 'reject' | 'request_changes' (hyphen accepted) -> WorkflowAction."""
    if isinstance(value, WorkflowAction):
        return value
    try:
        return WorkflowAction((value or "").strip().replace("-", "_"))
    except ValueError:
        raise InvalidRequestError("invalid_action", f"Unknown workflow action: {value!r}") from None


def parse_bulk_decision(value: Union[str, BulkDecision, None]) -> BulkDecision:
    if isinstance(value, BulkDecision):
        return value
    try:
        return BulkDecision((value or "").strip())
    except ValueError:
        raise InvalidRequestError("invalid_decision", f"Bulk decision must be approve or reject, got {value!r}") from None


def ensure_transition(current: AssignmentStatus, target: AssignmentStatus) -> None:
    """Raise IllegalTransitionError unless current -> target is an edge of the state machine."""
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise IllegalTransitionError(current.value, target.value)


def approval_threshold(step: Any) -> int:
    """Optional step: one approval is enough; otherwise min_approvals (at least 1)."""
    if step.is_optional:
        return 1
    return max(1, step.min_approvals or 1)


def count_step_approvals(step_history: Sequence[Dict[str, Any]], step_id: UUID) -> int:
    """Number of distinct actors with an approve entry on step_id."""
    key = str(step_id)
    actors = {
        entry.get("actor_id")
        for entry in step_history
        if entry.get("step_id") == key and entry.get("action") == WorkflowAction.APPROVE.value
    }
    return len(actors)


def find_next_step(steps: Sequence[Any], current_step: Any) -> Optional[Any]:
    """Step with the smallest order greater than the current one (order+1 when orders are contiguous)."""
    later = [s for s in steps if s.step_order > current_step.step_order]
    if not later:
        return None
    return min(later, key=lambda s: s.step_order)


def history_entry(step_id: UUID, action: WorkflowAction, actor_id: str, at: datetime) -> Dict[str, Any]:
    return {
        "step_id": str(step_id),
        "action": action.value,
        "actor_id": actor_id,
        "timestamp": at.isoformat(),
    }


@dataclass(frozen=True)
class Transition:
    """Outcome of one reviewer action, computed before anything is written."""

    previous_status: AssignmentStatus
    status: AssignmentStatus
    current_step_id: Optional[UUID]
    step_history: List[Dict[str, Any]]
    approvals_on_step: int
    next_step: Optional[Any] = None

    @property
    def advanced(self) -> bool:
        return self.next_step is not None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


def plan_transition(
    status: Union[str, AssignmentStatus],
    steps: Sequence[Any],
    current_step: Any,
    step_history: Sequence[Dict[str, Any]],
    action: WorkflowAction,
    actor_id: str,
    now: datetime,
) -> Transition:
    """
    Tính trạng thái mới cho assignment.
    approve: đủ ngưỡng -> step kế tiếp (pending) hoặc completed nếu là step cuối; chưa đủ -> giữ nguyên.
    reject -> rejected; request_changes -> changes_requested.
    """
    current = AssignmentStatus(status)
    history = list(step_history or [])
    history.append(history_entry(current_step.id, action, actor_id, now))
    approvals = count_step_approvals(history, current_step.id)

    next_step = None
    step_id: Optional[UUID] = current_step.id
    if action is WorkflowAction.APPROVE:
        target = AssignmentStatus.PENDING
        if approvals >= approval_threshold(current_step):
            next_step = find_next_step(steps, current_step)
            if next_step is not None:
                step_id = next_step.id
            else:
                target = AssignmentStatus.COMPLETED
    elif action is WorkflowAction.REJECT:
        target = AssignmentStatus.REJECTED
    else:
        target = AssignmentStatus.CHANGES_REQUESTED

    ensure_transition(current, target)
    return Transition(
        previous_status=current,
        status=target,
        current_step_id=step_id,
        step_history=history,
        approvals_on_step=approvals,
        next_step=next_step,
    )
