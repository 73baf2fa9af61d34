"""In-app notification schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: Optional[UUID] = None
    recipient_id: str
    channel: str
    notification_type: str
    payload: Optional[Dict[str, Any]] = None
    status: str
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    recipient_id: str
    notifications: List[NotificationOut]


class MarkReadRequest(BaseModel):
    recipient_id: str = Field(..., min_length=1)
    notification_ids: List[UUID] = Field(..., min_length=1)


class MarkReadResponse(BaseModel):
    updated: int
