"""Revision snapshot schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RevisionCreateRequest(BaseModel):
    """Body for POST /approval/posts/{post_id}/revisions. snapshot=null -> chụp post hiện tại."""

    actor_id: str = Field(..., min_length=1)
    snapshot: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None


class RevisionRestoreRequest(BaseModel):
    actor_id: str = Field(..., min_length=1)


class RevisionOut(BaseModel):
    id: UUID
    post_id: UUID
    revision_number: int
    actor_id: str
    snapshot: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    summary: str
    created_at: Optional[datetime] = None


class RevisionListResponse(BaseModel):
    post_id: UUID
    revisions: List[RevisionOut]
