"""In-app approval notifications (read side)."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationOut,
)
from app.services.notification_service import get_notifications, mark_notifications_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def get_recipient_notifications(
    recipient_id: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200, description="Số dòng tối đa"),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """Thông báo của recipient (mới nhất trước)."""
    rows = await get_notifications(db, recipient_id=recipient_id, limit=limit)
    return NotificationListResponse(
        recipient_id=recipient_id,
        notifications=[NotificationOut.model_validate(n) for n in rows],
    )


@router.post("/read", response_model=MarkReadResponse)
async def post_mark_read(
    payload: MarkReadRequest,
    db: AsyncSession = Depends(get_db),
) -> MarkReadResponse:
    updated = await mark_notifications_read(db, payload.notification_ids, payload.recipient_id)
    return MarkReadResponse(updated=updated)
