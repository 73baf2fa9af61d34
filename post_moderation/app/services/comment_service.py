"""
Comment threads trên post đang duyệt.
Root comment: thread_id = id (id sinh phía client nên chỉ cần một INSERT).
Reply: kế thừa thread_id của parent.
"""
import uuid
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import utcnow
from app.errors import InvalidRequestError, NotFoundError, PersistenceError
from app.logging_config import get_logger
from app.models import ApprovalComment
from app.models.enums import CommentType
from app.services.content_store import SqlContentStore
from app.services.notification_service import (
    NotificationDispatcher,
    SessionNotificationQueue,
    dispatch_safely,
)

logger = get_logger(__name__)


async def get_comment(db: AsyncSession, comment_id: UUID) -> ApprovalComment:
    r = await db.execute(select(ApprovalComment).where(ApprovalComment.id == comment_id))
    comment = r.scalar_one_or_none()
    if not comment:
        raise NotFoundError("comment_not_found", "Comment not found")
    return comment


async def create_comment(
    db: AsyncSession,
    post_id: UUID,
    actor_id: str,
    body: str,
    parent_comment_id: Optional[UUID] = None,
    comment_type: str = CommentType.FEEDBACK.value,
    mentions: Optional[Sequence[str]] = None,
    step_id: Optional[UUID] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> ApprovalComment:
    """
    Tạo comment. Parent không tồn tại -> NotFoundError;
    parent thuộc post khác hoặc body rỗng -> InvalidRequestError.
    """
    if not actor_id:
        raise InvalidRequestError("actor_id_required", "actor_id is required")
    if not body or not body.strip():
        raise InvalidRequestError("empty_comment", "Comment body must not be empty")
    try:
        ctype = CommentType(comment_type).value
    except ValueError:
        raise InvalidRequestError("invalid_comment_type", f"Unknown comment type: {comment_type!r}") from None

    await SqlContentStore(db).get_post(post_id)

    comment_id = uuid.uuid4()
    thread_id = comment_id
    if parent_comment_id is not None:
        parent = await get_comment(db, parent_comment_id)
        if parent.post_id != post_id:
            raise InvalidRequestError("parent_post_mismatch", "Parent comment belongs to another post")
        thread_id = parent.thread_id or parent.id

    mention_list = list(dict.fromkeys(m for m in (mentions or []) if m)) or None
    comment = ApprovalComment(
        id=comment_id,
        post_id=post_id,
        actor_id=actor_id,
        body=body,
        comment_type=ctype,
        parent_comment_id=parent_comment_id,
        thread_id=thread_id,
        is_resolved=False,
        mentions=mention_list,
        workflow_step_id=step_id,
    )
    db.add(comment)
    try:
        await db.flush()
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e
    logger.info(
        "comment.created",
        post_id=str(post_id),
        comment_id=str(comment_id),
        thread_id=str(thread_id),
        reply=parent_comment_id is not None,
    )

    if mention_list:
        queue = notifier if notifier is not None else SessionNotificationQueue(db)
        recipients = [m for m in mention_list if m != actor_id]
        await dispatch_safely(
            queue,
            recipients,
            "comment_mention",
            {"post_id": post_id, "comment_id": comment_id, "actor_id": actor_id},
            post_id=post_id,
        )
    return comment


async def resolve_comment(
    db: AsyncSession,
    comment_id: UUID,
    resolver_id: str,
    resolution_text: Optional[str] = None,
) -> ApprovalComment:
    """Đánh dấu resolved. Gọi lại sẽ ghi đè resolver / thời điểm / nội dung."""
    if not resolver_id:
        raise InvalidRequestError("actor_id_required", "resolver_id is required")
    comment = await get_comment(db, comment_id)
    comment.is_resolved = True
    comment.resolved_by = resolver_id
    comment.resolved_at = utcnow()
    comment.resolved_comment = resolution_text
    try:
        await db.flush()
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e
    logger.info("comment.resolved", comment_id=str(comment_id), resolver_id=resolver_id)
    return comment


async def get_approval_comments(db: AsyncSession, post_id: UUID) -> List[ApprovalComment]:
    """All comments of the post, oldest first."""
    r = await db.execute(
        select(ApprovalComment)
        .where(ApprovalComment.post_id == post_id)
        .order_by(ApprovalComment.created_at.asc(), ApprovalComment.id.asc())
    )
    return list(r.scalars().all())
