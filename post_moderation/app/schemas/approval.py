"""Approval workflow request/response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import (
    ApproverType,
    BulkDecision,
    RuleType,
    WorkflowScope,
)


# --- Workflow definitions ---


class WorkflowStepCreate(BaseModel):
    """One step in POST /approval/workflows."""

    step_order: int = Field(..., ge=1, description="Thứ tự step, duy nhất và tăng dần")
    step_name: str = Field(..., min_length=1, max_length=256)
    approver_type: ApproverType
    approver_reference: str = Field(..., min_length=1, max_length=128)
    min_approvals: int = Field(1, ge=1)
    auto_escalate_after_hours: Optional[int] = Field(None, ge=1)
    is_optional: bool = False
    sla_hours: Optional[int] = Field(None, ge=1)


class WorkflowCreateRequest(BaseModel):
    """Body for POST /approval/workflows."""

    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = None
    scope: WorkflowScope = WorkflowScope.GLOBAL
    scope_filters: Optional[Dict[str, List[str]]] = Field(
        None, description='{"user_ids": [...], "team_ids": [...]}'
    )
    created_by: Optional[str] = None
    steps: List[WorkflowStepCreate] = Field(..., min_length=1)


class WorkflowStepOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    step_order: int
    step_name: str
    approver_type: str
    approver_reference: str
    min_approvals: int
    auto_escalate_after_hours: Optional[int] = None
    is_optional: bool
    sla_hours: Optional[int] = None


class WorkflowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: str
    name: str
    description: Optional[str] = None
    scope: str
    scope_filters: Optional[Dict[str, Any]] = None
    is_active: bool
    created_by: str
    created_at: Optional[datetime] = None
    steps: List[WorkflowStepOut]


class WorkflowListResponse(BaseModel):
    workflows: List[WorkflowOut]


# --- Assignment / engine ---


class SubmitRequest(BaseModel):
    """Body for POST /approval/posts/{post_id}/submit."""

    author_id: str = Field(..., min_length=1)
    workflow_id: Optional[UUID] = Field(None, description="null = default workflow resolution")


class ReviewActionRequest(BaseModel):
    """Body for approve / reject / request-changes."""

    actor_id: str = Field(..., min_length=1)
    comment: Optional[str] = None
    reason: Optional[str] = None


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: UUID
    workflow_id: UUID
    current_step_id: Optional[UUID] = None
    status: str
    step_history: List[Dict[str, Any]]
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubmitResponse(BaseModel):
    post_id: UUID
    post_status: str
    assignment: AssignmentOut


class BulkRequest(BaseModel):
    """Body for POST /approval/bulk."""

    post_ids: List[str] = Field(..., min_length=1)
    actor_id: str = Field(..., min_length=1)
    decision: BulkDecision = BulkDecision.APPROVE
    comment: Optional[str] = None
    reason: Optional[str] = None


class BulkFailureOut(BaseModel):
    post_id: str
    error: str
    detail: Optional[str] = None


class BulkResponse(BaseModel):
    success: List[str]
    failed: List[BulkFailureOut]
    updated_count: int


# --- Read models ---


class PendingApprovalOut(BaseModel):
    assignment: AssignmentOut
    post_content: Optional[str] = None
    post_author_id: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    step_name: Optional[str] = None
    step_order: Optional[int] = None


class PendingApprovalsResponse(BaseModel):
    actor_id: str
    items: List[PendingApprovalOut]


class ApprovalStatsResponse(BaseModel):
    actor_id: str
    total_posts: int
    draft_count: int
    pending_count: int
    approved_count: int
    rejected_count: int
    changes_requested_count: int
    published_count: int
    avg_approval_hours: Optional[float] = None
    decisions: Dict[str, int]


class DashboardRowOut(BaseModel):
    post_id: UUID
    user_id: str
    status: str
    scheduled_at: Optional[datetime] = None
    submitted_for_approval_at: Optional[datetime] = None
    requires_approval: bool
    workflow_id: Optional[UUID] = None
    current_step_id: Optional[UUID] = None
    assignment_status: Optional[str] = None
    step_name: Optional[str] = None
    step_order: Optional[int] = None
    open_comments: int
    total_comments: int
    can_act: bool


class DashboardResponse(BaseModel):
    actor_id: str
    rows: List[DashboardRowOut]


class HistoryEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: UUID
    actor_id: str
    action: str
    action_details: Optional[Dict[str, Optional[str]]] = None
    workflow_step_id: Optional[UUID] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    created_at: datetime


class HistoryResponse(BaseModel):
    entries: List[HistoryEntryOut]


# --- Approval rules ---


class ApprovalRuleCreate(BaseModel):
    """Body for POST /approval/rules."""

    user_id: str = Field(..., min_length=1)
    rule_name: str = Field(..., min_length=1, max_length=256)
    rule_type: RuleType = RuleType.CONTENT_APPROVAL
    conditions: Dict[str, Any] = Field(default_factory=dict)
    requires_approval: bool = True
    approver_user_ids: Optional[List[str]] = None
    auto_approve_after_hours: Optional[int] = Field(None, ge=1)


class ApprovalRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    rule_name: str
    rule_type: str
    is_active: bool
    conditions: Dict[str, Any]
    requires_approval: bool
    approver_user_ids: Optional[List[str]] = None
    auto_approve_after_hours: Optional[int] = None


class ApprovalCheckRequest(BaseModel):
    """Body for POST /approval/check."""

    user_id: str = Field(..., min_length=1)
    content: str = ""
    media_urls: Optional[List[str]] = None
    scheduled_at: Optional[datetime] = None


class ApprovalCheckResponse(BaseModel):
    requires_approval: bool
    reason: Optional[str] = None
    rule: Optional[ApprovalRuleOut] = None
