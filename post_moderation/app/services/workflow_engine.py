"""
Step advancement engine + bulk coordinator.

advance_workflow_step: approve / reject / request_changes trên assignment đang sống.
Ghi assignment bằng optimistic version check:
    UPDATE post_approval_assignments SET ..., version = version + 1
    WHERE id = :id AND version = :read_version
0 row -> có người ghi trước; đọc lại và tính lại (tối đa APPROVAL_MAX_RETRIES lần).
bulk_advance_workflow: mỗi post một session riêng; lỗi từng item được ghi lại, không dừng batch.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import async_session_factory, utcnow
from app.errors import (
    ConcurrencyConflictError,
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
)
from app.logging_config import get_logger
from app.models import PostApprovalAssignment
from app.models.enums import AssignmentStatus, PostStatus, WorkflowAction
from app.services.assignment_service import get_live_assignment
from app.services.content_store import ContentStore, SqlContentStore
from app.services.history_service import record_history
from app.services.notification_service import (
    NotificationDispatcher,
    SessionNotificationQueue,
    approver_recipients,
    dispatch_safely,
)
from app.services.workflow_definition_service import get_workflow
from app.services.workflow_state import (
    ACTION_TO_HISTORY,
    Transition,
    parse_action,
    parse_bulk_decision,
    plan_transition,
)

logger = get_logger(__name__)

TERMINAL_EVENTS = {
    AssignmentStatus.COMPLETED: "approval_completed",
    AssignmentStatus.REJECTED: "approval_rejected",
    AssignmentStatus.CHANGES_REQUESTED: "changes_requested",
}


async def write_transition(
    db: AsyncSession,
    assignment: PostApprovalAssignment,
    transition: Transition,
    now: datetime,
) -> bool:
    """Conditional write keyed on the version we read. False = lost the race."""
    stmt = (
        update(PostApprovalAssignment)
        .where(
            PostApprovalAssignment.id == assignment.id,
            PostApprovalAssignment.version == assignment.version,
        )
        .values(
            status=transition.status.value,
            current_step_id=transition.current_step_id,
            step_history=transition.step_history,
            version=PostApprovalAssignment.version + 1,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    r = await db.execute(stmt)
    return r.rowcount == 1


def _post_outcome_fields(
    transition: Transition,
    actor_id: str,
    comment: Optional[str],
    reason: Optional[str],
    now: datetime,
) -> Optional[Dict[str, Any]]:
    """Fields the content store must reflect for a terminal outcome."""
    if transition.status is AssignmentStatus.COMPLETED:
        return {"status": PostStatus.APPROVED.value, "approved_at": now, "approved_by": actor_id}
    if transition.status is AssignmentStatus.REJECTED:
        return {
            "status": PostStatus.REJECTED.value,
            "rejected_at": now,
            "rejected_by": actor_id,
            "rejection_reason": reason or comment,
        }
    if transition.status is AssignmentStatus.CHANGES_REQUESTED:
        return {"status": PostStatus.CHANGES_REQUESTED.value}
    return None


async def advance_workflow_step(
    db: AsyncSession,
    post_id: UUID,
    actor_id: str,
    action: Union[str, WorkflowAction],
    comment: Optional[str] = None,
    reason: Optional[str] = None,
    content_store: Optional[ContentStore] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> PostApprovalAssignment:
    """
    Áp dụng một hành động của reviewer lên assignment đang sống của post.
    NotFoundError nếu post không có assignment pending; InvalidRequestError nếu action/actor sai.
    Luôn ghi đúng một dòng approval_history. Thông báo là best-effort.
    """
    wf_action = parse_action(action)
    if not actor_id:
        raise InvalidRequestError("actor_id_required", "actor_id is required")
    store = content_store or SqlContentStore(db)
    queue = notifier if notifier is not None else SessionNotificationQueue(db)
    max_attempts = max(1, get_settings().approval_max_retries)

    try:
        for attempt in range(1, max_attempts + 1):
            assignment = await get_live_assignment(db, post_id, refresh=True)
            if assignment is None:
                raise NotFoundError("assignment_not_found", "No pending approval for this post")
            workflow = await get_workflow(db, assignment.workflow_id)
            current_step = next((s for s in workflow.steps if s.id == assignment.current_step_id), None)
            if current_step is None:
                raise NotFoundError("workflow_step_not_found", "Current workflow step no longer exists")

            now = utcnow()
            transition = plan_transition(
                assignment.status,
                workflow.steps,
                current_step,
                assignment.step_history,
                wf_action,
                actor_id,
                now,
            )
            if await write_transition(db, assignment, transition, now):
                break
            logger.info(
                "approval.version_conflict",
                post_id=str(post_id),
                assignment_id=str(assignment.id),
                attempt=attempt,
            )
        else:
            raise ConcurrencyConflictError()

        await db.refresh(assignment)
        author_id: Optional[str] = None
        outcome = _post_outcome_fields(transition, actor_id, comment, reason, now)
        if outcome is not None:
            post = await store.get_post(post_id)
            author_id = post.user_id
            await store.update_post(post_id, outcome)

        await record_history(
            db,
            post_id=post_id,
            actor_id=actor_id,
            action=ACTION_TO_HISTORY[wf_action],
            comment=comment,
            reason=reason,
            step_id=current_step.id,
            previous_status=transition.previous_status.value,
            new_status=transition.status.value,
        )
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e

    logger.info(
        "approval.step_advanced",
        post_id=str(post_id),
        actor_id=actor_id,
        action=wf_action.value,
        status=transition.status.value,
        step_id=str(transition.current_step_id) if transition.current_step_id else None,
        approvals_on_step=transition.approvals_on_step,
        advanced=transition.advanced,
    )

    payload = {
        "post_id": post_id,
        "workflow_id": assignment.workflow_id,
        "step_id": transition.current_step_id,
        "status": transition.status.value,
        "action": wf_action.value,
        "actor_id": actor_id,
    }
    if transition.is_terminal:
        if author_id:
            await dispatch_safely(queue, [author_id], TERMINAL_EVENTS[transition.status], payload, post_id=post_id)
    elif transition.advanced:
        payload["step_name"] = transition.next_step.step_name
        await dispatch_safely(
            queue,
            approver_recipients(transition.next_step),
            "approval_requested",
            payload,
            post_id=post_id,
        )
    return assignment


@dataclass
class BulkFailure:
    post_id: str
    error: str
    detail: Optional[str] = None


@dataclass
class BulkResult:
    """Per-item outcome of a bulk decision; not a transaction."""

    success: List[str] = field(default_factory=list)
    failed: List[BulkFailure] = field(default_factory=list)


def _error_kind(exc: Exception) -> str:
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, InvalidRequestError):
        return "invalid_request"
    return "persistence_error"


def _error_detail(exc: Exception) -> str:
    """Error code for app errors, the message for anything else."""
    if isinstance(exc, (NotFoundError, InvalidRequestError, PersistenceError)):
        return exc.code
    return str(exc)


def _coerce_post_id(value: Union[str, UUID]) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundError("post_not_found", f"Unknown post id {value!r}") from None


async def bulk_advance_workflow(
    post_ids: Sequence[Union[str, UUID]],
    actor_id: str,
    decision: str,
    comment: Optional[str] = None,
    reason: Optional[str] = None,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> BulkResult:
    """
    Áp dụng approve/reject cho nhiều post. Mỗi post chạy trong session riêng và commit độc lập;
    NotFound / InvalidRequest / Persistence errors của từng item được ghi vào failed, batch tiếp tục.
    """
    bulk_decision = parse_bulk_decision(decision)
    if not actor_id:
        raise InvalidRequestError("actor_id_required", "actor_id is required")
    settings = get_settings()
    if len(post_ids) > settings.bulk_max_items:
        raise InvalidRequestError(
            "bulk_too_large",
            f"At most {settings.bulk_max_items} posts per bulk request",
        )
    factory = session_factory or async_session_factory
    semaphore = asyncio.Semaphore(max(1, settings.bulk_concurrency))

    async def _run_one(raw_id: Union[str, UUID]) -> Optional[Exception]:
        async with semaphore:
            async with factory() as db:
                try:
                    await advance_workflow_step(
                        db,
                        post_id=_coerce_post_id(raw_id),
                        actor_id=actor_id,
                        action=bulk_decision.value,
                        comment=comment,
                        reason=reason,
                    )
                    await db.commit()
                except (NotFoundError, InvalidRequestError, PersistenceError, SQLAlchemyError) as e:
                    await db.rollback()
                    logger.warning("approval.bulk_item_failed", post_id=str(raw_id), error=str(e))
                    return e
        return None

    # gather keeps input order; each coroutine returns its own outcome, no shared list mutation.
    outcomes = await asyncio.gather(*(_run_one(pid) for pid in post_ids))
    result = BulkResult()
    for raw_id, exc in zip(post_ids, outcomes):
        if exc is None:
            result.success.append(str(raw_id))
        else:
            result.failed.append(
                BulkFailure(post_id=str(raw_id), error=_error_kind(exc), detail=_error_detail(exc))
            )
    logger.info(
        "approval.bulk_done",
        actor_id=actor_id,
        decision=bulk_decision.value,
        succeeded=len(result.success),
        failed=len(result.failed),
    )
    return result
