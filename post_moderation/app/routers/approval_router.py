"""Approval workflow API: workflows, submit, approve / reject / request-changes, bulk, read models, rules."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.models.enums import WorkflowAction
from app.routers.errors import SERVICE_ERRORS, raise_http
from app.schemas.common import ERROR_RESPONSES
from app.schemas.approval import (
    ApprovalCheckRequest,
    ApprovalCheckResponse,
    ApprovalRuleCreate,
    ApprovalRuleOut,
    ApprovalStatsResponse,
    AssignmentOut,
    BulkFailureOut,
    BulkRequest,
    BulkResponse,
    DashboardResponse,
    DashboardRowOut,
    HistoryEntryOut,
    HistoryResponse,
    PendingApprovalOut,
    PendingApprovalsResponse,
    ReviewActionRequest,
    SubmitRequest,
    SubmitResponse,
    WorkflowCreateRequest,
    WorkflowListResponse,
    WorkflowOut,
)
from app.services.approval_query_service import (
    get_approval_dashboard,
    get_approval_stats,
    get_pending_approvals,
)
from app.services.approval_rules_service import check_approval_required, create_rule, list_rules
from app.services.assignment_service import submit_for_approval
from app.services.history_service import list_history
from app.services.workflow_definition_service import create_workflow, get_workflow, list_workflows
from app.services.workflow_engine import advance_workflow_step, bulk_advance_workflow

router = APIRouter(prefix="/approval", tags=["approval"], responses=ERROR_RESPONSES)


# --- Workflows ---


@router.post("/workflows", response_model=WorkflowOut, status_code=status.HTTP_201_CREATED)
async def post_workflow(
    payload: WorkflowCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> WorkflowOut:
    """Tạo workflow + steps. 400 nếu step_order trùng / không tăng dần."""
    try:
        workflow = await create_workflow(db, payload)
    except SERVICE_ERRORS as e:
        raise_http(e)
    return WorkflowOut.model_validate(workflow)


@router.get("/workflows", response_model=WorkflowListResponse)
async def get_workflows(
    owner_id: Optional[str] = Query(None),
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
) -> WorkflowListResponse:
    workflows = await list_workflows(db, owner_id=owner_id, active_only=active_only)
    return WorkflowListResponse(workflows=[WorkflowOut.model_validate(w) for w in workflows])


@router.get("/workflows/{workflow_id}", response_model=WorkflowOut)
async def get_workflow_by_id(
    workflow_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> WorkflowOut:
    try:
        workflow = await get_workflow(db, workflow_id)
    except SERVICE_ERRORS as e:
        raise_http(e)
    return WorkflowOut.model_validate(workflow)


# --- Submit + reviewer actions ---


@router.post("/posts/{post_id}/submit", response_model=SubmitResponse)
async def post_submit(
    post_id: UUID,
    payload: SubmitRequest,
    db: AsyncSession = Depends(get_db),
) -> SubmitResponse:
    """
    Gửi post vào workflow (workflow_id hoặc workflow mặc định).
    Idempotent: post đã có assignment pending -> trả về assignment đó.
    """
    try:
        post, assignment = await submit_for_approval(
            db,
            post_id=post_id,
            author_id=payload.author_id,
            workflow_id=payload.workflow_id,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return SubmitResponse(
        post_id=post.id,
        post_status=post.status,
        assignment=AssignmentOut.model_validate(assignment),
    )


async def _review(
    db: AsyncSession,
    post_id: UUID,
    payload: ReviewActionRequest,
    action: WorkflowAction,
) -> AssignmentOut:
    try:
        assignment = await advance_workflow_step(
            db,
            post_id=post_id,
            actor_id=payload.actor_id,
            action=action,
            comment=payload.comment,
            reason=payload.reason,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return AssignmentOut.model_validate(assignment)


@router.post("/posts/{post_id}/approve", response_model=AssignmentOut)
async def post_approve(
    post_id: UUID,
    payload: ReviewActionRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
    """Approve step hiện tại. 404 nếu post không có assignment pending; 409 nếu xung đột ghi."""
    return await _review(db, post_id, payload, WorkflowAction.APPROVE)


@router.post("/posts/{post_id}/reject", response_model=AssignmentOut)
async def post_reject(
    post_id: UUID,
    payload: ReviewActionRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
    return await _review(db, post_id, payload, WorkflowAction.REJECT)


@router.post("/posts/{post_id}/request-changes", response_model=AssignmentOut)
async def post_request_changes(
    post_id: UUID,
    payload: ReviewActionRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
    return await _review(db, post_id, payload, WorkflowAction.REQUEST_CHANGES)


@router.post("/bulk", response_model=BulkResponse)
async def post_bulk(payload: BulkRequest) -> BulkResponse:
    """
    Approve/reject nhiều post. Luôn 200: lỗi từng post nằm trong failed.
    Mỗi post commit trong session riêng nên không dùng get_db ở đây.
    """
    try:
        result = await bulk_advance_workflow(
            payload.post_ids,
            actor_id=payload.actor_id,
            decision=payload.decision.value,
            comment=payload.comment,
            reason=payload.reason,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return BulkResponse(
        success=result.success,
        failed=[BulkFailureOut(post_id=f.post_id, error=f.error, detail=f.detail) for f in result.failed],
        updated_count=len(result.success),
    )


# --- Read models ---


@router.get("/pending", response_model=PendingApprovalsResponse)
async def get_pending(
    actor_id: str = Query(..., min_length=1),
    post_id: Optional[UUID] = Query(None),
    approver_refs: List[str] = Query(default=[], description="role:<ref> / team:<ref> của actor"),
    db: AsyncSession = Depends(get_db),
) -> PendingApprovalsResponse:
    """Các post đang chờ actor duyệt (cũ nhất trước)."""
    rows = await get_pending_approvals(db, actor_id=actor_id, post_id=post_id, approver_refs=approver_refs)
    items = [
        PendingApprovalOut(
            assignment=AssignmentOut.model_validate(assignment),
            post_content=post.content,
            post_author_id=post.user_id,
            scheduled_at=post.scheduled_at,
            step_name=step.step_name,
            step_order=step.step_order,
        )
        for assignment, post, step in rows
    ]
    return PendingApprovalsResponse(actor_id=actor_id, items=items)


@router.get("/stats", response_model=ApprovalStatsResponse)
async def get_stats(
    actor_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> ApprovalStatsResponse:
    stats = await get_approval_stats(db, actor_id)
    return ApprovalStatsResponse(**stats)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    actor_id: str = Query(..., min_length=1),
    approver_refs: List[str] = Query(default=[]),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    rows = await get_approval_dashboard(db, actor_id=actor_id, approver_refs=approver_refs)
    return DashboardResponse(actor_id=actor_id, rows=[DashboardRowOut(**row) for row in rows])


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    actor_id: Optional[str] = Query(None),
    post_id: Optional[UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1, description="Mặc định HISTORY_PAGE_SIZE"),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> HistoryResponse:
    """Audit trail (mới nhất trước)."""
    entries = await list_history(db, actor_id=actor_id, post_id=post_id, limit=limit, offset=offset)
    return HistoryResponse(entries=[HistoryEntryOut.model_validate(e) for e in entries])


# --- Rules ---


@router.post("/rules", response_model=ApprovalRuleOut, status_code=status.HTTP_201_CREATED)
async def post_rule(
    payload: ApprovalRuleCreate,
    db: AsyncSession = Depends(get_db),
) -> ApprovalRuleOut:
    try:
        rule = await create_rule(db, payload)
    except SERVICE_ERRORS as e:
        raise_http(e)
    return ApprovalRuleOut.model_validate(rule)


@router.get("/rules", response_model=List[ApprovalRuleOut])
async def get_rules(
    user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> List[ApprovalRuleOut]:
    rules = await list_rules(db, user_id)
    return [ApprovalRuleOut.model_validate(r) for r in rules]


@router.post("/check", response_model=ApprovalCheckResponse)
async def post_check(
    payload: ApprovalCheckRequest,
    db: AsyncSession = Depends(get_db),
) -> ApprovalCheckResponse:
    """Post với nội dung này có cần duyệt theo rule của user không."""
    decision = await check_approval_required(
        db,
        user_id=payload.user_id,
        content=payload.content,
        media_urls=payload.media_urls,
        scheduled_at=payload.scheduled_at,
    )
    return ApprovalCheckResponse(
        requires_approval=decision.requires_approval,
        reason=decision.reason,
        rule=ApprovalRuleOut.model_validate(decision.rule) if decision.rule else None,
    )
