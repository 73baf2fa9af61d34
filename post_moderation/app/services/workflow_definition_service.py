"""
Workflow definitions: tạo, đọc, và chọn workflow mặc định cho một post.

Default resolution precedence: user-scoped > team-scoped > global;
ties broken by newest created_at, then by id.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import InvalidRequestError, NotFoundError, PersistenceError
from app.logging_config import get_logger
from app.models import ApprovalWorkflow, ApprovalWorkflowStep
from app.models.enums import WorkflowScope
from app.schemas.approval import WorkflowCreateRequest, WorkflowStepCreate

logger = get_logger(__name__)

SCOPE_PRECEDENCE = {
    WorkflowScope.USER.value: 0,
    WorkflowScope.TEAM.value: 1,
    WorkflowScope.GLOBAL.value: 2,
}


def validate_steps(steps: List[WorkflowStepCreate]) -> None:
    """step_order phải duy nhất và tăng dần nghiêm ngặt theo thứ tự khai báo."""
    if not steps:
        raise InvalidRequestError("workflow_has_no_steps", "A workflow needs at least one step")
    orders = [s.step_order for s in steps]
    if any(b <= a for a, b in zip(orders, orders[1:])):
        raise InvalidRequestError(
            "invalid_step_order",
            f"Step orders must be unique and strictly increasing, got {orders}",
        )


async def create_workflow(db: AsyncSession, payload: WorkflowCreateRequest) -> ApprovalWorkflow:
    """Insert workflow + steps."""
    validate_steps(payload.steps)
    workflow = ApprovalWorkflow(
        owner_id=payload.owner_id,
        name=payload.name,
        description=payload.description,
        scope=payload.scope.value,
        scope_filters=payload.scope_filters,
        is_active=True,
        created_by=payload.created_by or payload.owner_id,
    )
    workflow.steps = [
        ApprovalWorkflowStep(
            step_order=s.step_order,
            step_name=s.step_name,
            approver_type=s.approver_type.value,
            approver_reference=s.approver_reference,
            min_approvals=s.min_approvals,
            auto_escalate_after_hours=s.auto_escalate_after_hours,
            is_optional=s.is_optional,
            sla_hours=s.sla_hours,
        )
        for s in payload.steps
    ]
    db.add(workflow)
    try:
        await db.flush()
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e
    logger.info(
        "workflow.created",
        workflow_id=str(workflow.id),
        owner_id=workflow.owner_id,
        scope=workflow.scope,
        steps=len(workflow.steps),
    )
    return workflow


async def get_workflow(db: AsyncSession, workflow_id: UUID) -> ApprovalWorkflow:
    """Workflow kèm steps (theo step_order). NotFoundError nếu không có."""
    r = await db.execute(
        select(ApprovalWorkflow)
        .where(ApprovalWorkflow.id == workflow_id)
        .options(selectinload(ApprovalWorkflow.steps))
    )
    workflow = r.scalar_one_or_none()
    if not workflow:
        raise NotFoundError("workflow_not_found", "Workflow not found")
    return workflow


async def list_workflows(
    db: AsyncSession,
    owner_id: Optional[str] = None,
    active_only: bool = True,
) -> List[ApprovalWorkflow]:
    q = select(ApprovalWorkflow).options(selectinload(ApprovalWorkflow.steps))
    if owner_id is not None:
        q = q.where(ApprovalWorkflow.owner_id == owner_id)
    if active_only:
        q = q.where(ApprovalWorkflow.is_active.is_(True))
    q = q.order_by(ApprovalWorkflow.created_at.desc())
    r = await db.execute(q)
    return list(r.scalars().all())


def workflow_matches_post(workflow: ApprovalWorkflow, author_id: str, team_id: Optional[str]) -> bool:
    """
    user: author trong scope_filters.user_ids (không có filter -> owner_id == author).
    team: team_id trong scope_filters.team_ids (không có filter -> owner_id == team_id).
    global: luôn khớp.
    """
    filters = workflow.scope_filters or {}
    if workflow.scope == WorkflowScope.USER.value:
        user_ids = filters.get("user_ids")
        if user_ids:
            return author_id in user_ids
        return workflow.owner_id == author_id
    if workflow.scope == WorkflowScope.TEAM.value:
        if not team_id:
            return False
        team_ids = filters.get("team_ids")
        if team_ids:
            return team_id in team_ids
        return workflow.owner_id == team_id
    return workflow.scope == WorkflowScope.GLOBAL.value


def _created_key(workflow: ApprovalWorkflow) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC.
    created = workflow.created_at or datetime.min
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def rank_workflows(candidates: List[ApprovalWorkflow]) -> List[ApprovalWorkflow]:
    """Best first: scope precedence, then newest created_at, then id."""
    ranked = sorted(candidates, key=lambda w: str(w.id))
    ranked.sort(key=_created_key, reverse=True)
    ranked.sort(key=lambda w: SCOPE_PRECEDENCE.get(w.scope, len(SCOPE_PRECEDENCE)))
    return ranked


async def resolve_workflow_for_post(db: AsyncSession, post: Any) -> Optional[ApprovalWorkflow]:
    """Default workflow for a post without an explicit workflow_id; None when nothing matches."""
    r = await db.execute(
        select(ApprovalWorkflow)
        .where(ApprovalWorkflow.is_active.is_(True))
        .options(selectinload(ApprovalWorkflow.steps))
    )
    candidates = [
        w
        for w in r.scalars().all()
        if w.steps and workflow_matches_post(w, post.user_id, post.team_id)
    ]
    if not candidates:
        return None
    chosen = rank_workflows(candidates)[0]
    logger.info(
        "workflow.resolved",
        post_id=str(post.id),
        workflow_id=str(chosen.id),
        scope=chosen.scope,
        candidates=len(candidates),
    )
    return chosen
