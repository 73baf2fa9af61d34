"""
Assignment tracker: mỗi post có tối đa một assignment đang sống (pending).
- ensure_workflow_assignment: idempotent, tạo assignment ở step đầu tiên.
- submit_for_approval: đánh dấu post pending_approval rồi ensure assignment.
"""
import uuid
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import utcnow
from app.errors import ConcurrencyConflictError, InvalidRequestError, NotFoundError, PersistenceError
from app.logging_config import get_logger
from app.models import PostApprovalAssignment, ScheduledPost
from app.models.enums import AssignmentStatus, HistoryAction, PostStatus
from app.services.content_store import ContentStore, SqlContentStore
from app.services.history_service import record_history
from app.services.notification_service import (
    NotificationDispatcher,
    SessionNotificationQueue,
    approver_recipients,
    dispatch_safely,
)
from app.services.workflow_definition_service import get_workflow, resolve_workflow_for_post

logger = get_logger(__name__)


async def get_live_assignment(
    db: AsyncSession,
    post_id: UUID,
    refresh: bool = False,
) -> Optional[PostApprovalAssignment]:
    """The post's pending assignment, if any. refresh=True bypasses the identity map."""
    q = select(PostApprovalAssignment).where(
        PostApprovalAssignment.post_id == post_id,
        PostApprovalAssignment.status == AssignmentStatus.PENDING.value,
    )
    if refresh:
        q = q.execution_options(populate_existing=True)
    r = await db.execute(q)
    return r.scalar_one_or_none()


async def ensure_workflow_assignment(
    db: AsyncSession,
    post_id: UUID,
    author_id: str,
    workflow_id: Optional[UUID] = None,
    content_store: Optional[ContentStore] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> PostApprovalAssignment:
    """
    Trả về assignment pending nếu đã có (không thay đổi gì).
    Ngược lại: resolve workflow (id cụ thể hoặc mặc định), tạo assignment ở step đầu, ghi history "submitted".
    Terminal assignments are never reused; a resubmission opens a new cycle.
    """
    if not author_id:
        raise InvalidRequestError("author_id_required", "author_id is required")
    existing = await get_live_assignment(db, post_id)
    if existing:
        return existing

    store = content_store or SqlContentStore(db)
    queue = notifier if notifier is not None else SessionNotificationQueue(db)
    post = await store.get_post(post_id)

    if workflow_id is not None:
        workflow = await get_workflow(db, workflow_id)
        if not workflow.is_active:
            raise NotFoundError("workflow_not_found", "Workflow not found or inactive")
    else:
        workflow = await resolve_workflow_for_post(db, post)
        if workflow is None:
            raise NotFoundError("workflow_not_found", "No approval workflow matches this post")
    if not workflow.steps:
        raise InvalidRequestError("workflow_has_no_steps", "Workflow has no steps")

    first_step = min(workflow.steps, key=lambda s: s.step_order)
    now = utcnow()
    assignment = PostApprovalAssignment(
        id=uuid.uuid4(),
        post_id=post_id,
        workflow_id=workflow.id,
        current_step_id=first_step.id,
        status=AssignmentStatus.PENDING.value,
        step_history=[],
        version=1,
        created_at=now,
        updated_at=now,
    )
    db.add(assignment)
    try:
        await db.flush()
    except IntegrityError as e:
        # Partial unique index: someone else opened the live assignment first.
        raise ConcurrencyConflictError("A live assignment already exists for this post") from e
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e

    await record_history(
        db,
        post_id=post_id,
        actor_id=author_id,
        action=HistoryAction.SUBMITTED,
        step_id=first_step.id,
        previous_status=None,
        new_status=AssignmentStatus.PENDING.value,
    )
    logger.info(
        "approval.assignment_created",
        post_id=str(post_id),
        assignment_id=str(assignment.id),
        workflow_id=str(workflow.id),
        step_id=str(first_step.id),
    )
    await dispatch_safely(
        queue,
        approver_recipients(first_step),
        "approval_requested",
        {
            "post_id": post_id,
            "workflow_id": workflow.id,
            "step_id": first_step.id,
            "step_name": first_step.step_name,
            "author_id": post.user_id,
        },
        post_id=post_id,
    )
    return assignment


async def submit_for_approval(
    db: AsyncSession,
    post_id: UUID,
    author_id: str,
    workflow_id: Optional[UUID] = None,
    content_store: Optional[ContentStore] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Tuple[ScheduledPost, PostApprovalAssignment]:
    """Gửi duyệt: post -> pending_approval, requires_approval=True, rồi ensure assignment."""
    store = content_store or SqlContentStore(db)
    post = await store.get_post(post_id)
    if post.user_id != author_id:
        raise InvalidRequestError("author_mismatch", "Only the post author can submit it for approval")

    assignment = await ensure_workflow_assignment(
        db,
        post_id=post_id,
        author_id=author_id,
        workflow_id=workflow_id,
        content_store=store,
        notifier=notifier,
    )
    submitted_at = post.submitted_for_approval_at
    if post.status != PostStatus.PENDING_APPROVAL.value or submitted_at is None:
        submitted_at = utcnow()
    await store.update_post(
        post_id,
        {
            "status": PostStatus.PENDING_APPROVAL.value,
            "submitted_for_approval_at": submitted_at,
            "requires_approval": True,
            "approval_workflow_id": assignment.workflow_id,
        },
    )
    return post, assignment
