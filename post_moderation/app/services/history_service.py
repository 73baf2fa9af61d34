"""
Approval audit trail (approval_history): chỉ insert, không có đường update/delete.
"""
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models import ApprovalHistory
from app.models.enums import HistoryAction


def build_action_details(
    comment: Optional[str],
    reason: Optional[str],
) -> Optional[Dict[str, Optional[str]]]:
    """
    None khi cả comment và reason đều rỗng/thiếu.
    Otherwise {"comment": ..., "reason": ...}, each side independently None.
    """
    if not comment and not reason:
        return None
    return {"comment": comment or None, "reason": reason or None}


async def record_history(
    db: AsyncSession,
    post_id: UUID,
    actor_id: str,
    action: HistoryAction,
    comment: Optional[str] = None,
    reason: Optional[str] = None,
    step_id: Optional[UUID] = None,
    previous_status: Optional[str] = None,
    new_status: Optional[str] = None,
) -> ApprovalHistory:
    """Append one history row."""
    entry = ApprovalHistory(
        post_id=post_id,
        actor_id=actor_id,
        action=HistoryAction(action).value,
        action_details=build_action_details(comment, reason),
        workflow_step_id=step_id,
        previous_status=previous_status,
        new_status=new_status,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_history(
    db: AsyncSession,
    actor_id: Optional[str] = None,
    post_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[ApprovalHistory]:
    """History rows, newest first. limit defaults to HISTORY_PAGE_SIZE, capped at HISTORY_MAX_PAGE_SIZE."""
    settings = get_settings()
    page = limit if limit is not None else settings.history_page_size
    page = max(1, min(page, settings.history_max_page_size))
    q = select(ApprovalHistory)
    if actor_id is not None:
        q = q.where(ApprovalHistory.actor_id == actor_id)
    if post_id is not None:
        q = q.where(ApprovalHistory.post_id == post_id)
    q = q.order_by(ApprovalHistory.created_at.desc()).offset(max(0, offset)).limit(page)
    r = await db.execute(q)
    return list(r.scalars().all())
