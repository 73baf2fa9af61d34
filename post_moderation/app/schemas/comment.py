"""Comment thread schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import CommentType


class CommentCreateRequest(BaseModel):
    """Body for POST /approval/posts/{post_id}/comments."""

    actor_id: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    parent_comment_id: Optional[UUID] = Field(None, description="null = comment gốc, tạo thread mới")
    comment_type: CommentType = CommentType.FEEDBACK
    mentions: Optional[List[str]] = None
    workflow_step_id: Optional[UUID] = None


class CommentResolveRequest(BaseModel):
    resolver_id: str = Field(..., min_length=1)
    resolution_text: Optional[str] = None


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: UUID
    actor_id: str
    body: str
    comment_type: str
    parent_comment_id: Optional[UUID] = None
    thread_id: UUID
    is_resolved: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_comment: Optional[str] = None
    mentions: Optional[List[str]] = None
    workflow_step_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class CommentListResponse(BaseModel):
    post_id: UUID
    comments: List[CommentOut]
