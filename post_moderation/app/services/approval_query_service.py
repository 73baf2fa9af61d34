"""
Read models cho approval: pending queue của reviewer, thống kê, dashboard.
Chỉ đọc; không ghi gì.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    ApprovalComment,
    ApprovalHistory,
    ApprovalWorkflowStep,
    PostApprovalAssignment,
    ScheduledPost,
)
from app.models.enums import ApproverType, AssignmentStatus, HistoryAction, PostStatus


def parse_approver_refs(approver_refs: Sequence[str]) -> List[Tuple[str, str]]:
    """'role:editor' / 'team:growth' -> [(type, reference)]; malformed entries are skipped."""
    out: List[Tuple[str, str]] = []
    for ref in approver_refs or ():
        kind, sep, value = (ref or "").partition(":")
        if sep and value and kind in (ApproverType.ROLE.value, ApproverType.TEAM.value):
            out.append((kind, value))
    return out


def _approver_clause(actor_id: str, approver_refs: Sequence[str]):
    clauses = [
        and_(
            ApprovalWorkflowStep.approver_type == ApproverType.USER.value,
            ApprovalWorkflowStep.approver_reference == actor_id,
        )
    ]
    for kind, value in parse_approver_refs(approver_refs):
        clauses.append(
            and_(
                ApprovalWorkflowStep.approver_type == kind,
                ApprovalWorkflowStep.approver_reference == value,
            )
        )
    return or_(*clauses)


def can_act_on(step: Optional[ApprovalWorkflowStep], actor_id: str, approver_refs: Sequence[str] = ()) -> bool:
    if step is None:
        return False
    if step.approver_type == ApproverType.USER.value:
        return step.approver_reference == actor_id
    return (step.approver_type, step.approver_reference) in parse_approver_refs(approver_refs)


async def get_pending_approvals(
    db: AsyncSession,
    actor_id: str,
    post_id: Optional[UUID] = None,
    approver_refs: Sequence[str] = (),
) -> List[Tuple[PostApprovalAssignment, ScheduledPost, ApprovalWorkflowStep]]:
    """
    Assignment pending mà step hiện tại giao cho actor (user approver)
    hoặc cho một role/team trong approver_refs. Cũ nhất trước.
    """
    q = (
        select(PostApprovalAssignment, ScheduledPost, ApprovalWorkflowStep)
        .join(ScheduledPost, ScheduledPost.id == PostApprovalAssignment.post_id)
        .join(ApprovalWorkflowStep, ApprovalWorkflowStep.id == PostApprovalAssignment.current_step_id)
        .where(
            PostApprovalAssignment.status == AssignmentStatus.PENDING.value,
            _approver_clause(actor_id, approver_refs),
        )
    )
    if post_id is not None:
        q = q.where(PostApprovalAssignment.post_id == post_id)
    q = q.order_by(PostApprovalAssignment.created_at.asc())
    r = await db.execute(q)
    return [tuple(row) for row in r.all()]


async def get_approval_stats(db: AsyncSession, actor_id: str) -> Dict[str, Any]:
    """
    Thống kê cho actor:
    - số post của actor theo status
    - avg_approval_hours: trung bình (approved_at - submitted_for_approval_at) của các post đã duyệt
    - decisions: số quyết định actor đã đưa ra theo history action
    """
    r = await db.execute(
        select(ScheduledPost.status, func.count())
        .where(ScheduledPost.user_id == actor_id)
        .group_by(ScheduledPost.status)
    )
    by_status = {status: count for status, count in r.all()}

    r = await db.execute(
        select(ScheduledPost.submitted_for_approval_at, ScheduledPost.approved_at).where(
            ScheduledPost.user_id == actor_id,
            ScheduledPost.approved_at.is_not(None),
            ScheduledPost.submitted_for_approval_at.is_not(None),
        )
    )
    durations = [
        (approved - submitted).total_seconds() / 3600.0
        for submitted, approved in r.all()
        if approved >= submitted
    ]
    avg_hours = round(sum(durations) / len(durations), 2) if durations else None

    r = await db.execute(
        select(ApprovalHistory.action, func.count())
        .where(
            ApprovalHistory.actor_id == actor_id,
            ApprovalHistory.action != HistoryAction.SUBMITTED.value,
        )
        .group_by(ApprovalHistory.action)
    )
    decisions = {action: count for action, count in r.all()}

    return {
        "actor_id": actor_id,
        "total_posts": sum(by_status.values()),
        "draft_count": by_status.get(PostStatus.DRAFT.value, 0),
        "pending_count": by_status.get(PostStatus.PENDING_APPROVAL.value, 0),
        "approved_count": by_status.get(PostStatus.APPROVED.value, 0),
        "rejected_count": by_status.get(PostStatus.REJECTED.value, 0),
        "changes_requested_count": by_status.get(PostStatus.CHANGES_REQUESTED.value, 0),
        "published_count": by_status.get(PostStatus.PUBLISHED.value, 0),
        "avg_approval_hours": avg_hours,
        "decisions": decisions,
    }


async def get_approval_dashboard(
    db: AsyncSession,
    actor_id: str,
    approver_refs: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """Một dòng cho mỗi post có assignment pending, kèm số comment và can_act của actor."""
    open_comments = (
        select(ApprovalComment.post_id, func.count().label("n"))
        .where(ApprovalComment.is_resolved.is_(False))
        .group_by(ApprovalComment.post_id)
        .subquery()
    )
    total_comments = (
        select(ApprovalComment.post_id, func.count().label("n"))
        .group_by(ApprovalComment.post_id)
        .subquery()
    )
    q = (
        select(
            ScheduledPost,
            PostApprovalAssignment,
            ApprovalWorkflowStep,
            func.coalesce(open_comments.c.n, 0),
            func.coalesce(total_comments.c.n, 0),
        )
        .join(PostApprovalAssignment, PostApprovalAssignment.post_id == ScheduledPost.id)
        .outerjoin(ApprovalWorkflowStep, ApprovalWorkflowStep.id == PostApprovalAssignment.current_step_id)
        .outerjoin(open_comments, open_comments.c.post_id == ScheduledPost.id)
        .outerjoin(total_comments, total_comments.c.post_id == ScheduledPost.id)
        .where(PostApprovalAssignment.status == AssignmentStatus.PENDING.value)
        .order_by(PostApprovalAssignment.created_at.asc())
    )
    r = await db.execute(q)
    rows: List[Dict[str, Any]] = []
    for post, assignment, step, n_open, n_total in r.all():
        rows.append(
            {
                "post_id": post.id,
                "user_id": post.user_id,
                "status": post.status,
                "scheduled_at": post.scheduled_at,
                "submitted_for_approval_at": post.submitted_for_approval_at,
                "requires_approval": post.requires_approval,
                "workflow_id": assignment.workflow_id,
                "current_step_id": assignment.current_step_id,
                "assignment_status": assignment.status,
                "step_name": step.step_name if step else None,
                "step_order": step.step_order if step else None,
                "open_comments": int(n_open),
                "total_comments": int(n_total),
                "can_act": can_act_on(step, actor_id, approver_refs),
            }
        )
    return rows
