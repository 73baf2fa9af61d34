"""Content store: đọc/ghi scheduled_posts cho workflow engine và revision restore."""
from typing import Any, Mapping, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import utcnow
from app.errors import InvalidRequestError, NotFoundError, PersistenceError
from app.models import ScheduledPost

UPDATABLE_POST_FIELDS = frozenset(
    {
        "content",
        "media_urls",
        "scheduled_at",
        "status",
        "requires_approval",
        "submitted_for_approval_at",
        "approved_at",
        "approved_by",
        "rejected_at",
        "rejected_by",
        "rejection_reason",
        "approval_workflow_id",
    }
)


class ContentStore(Protocol):
    """What the approval workflow needs from the post store."""

    async def get_post(self, post_id: UUID) -> ScheduledPost:
        ...

    async def update_post(self, post_id: UUID, fields: Mapping[str, Any]) -> None:
        ...


class SqlContentStore:
    """ContentStore over the scheduled_posts table, bound to the caller's session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_post(self, post_id: UUID) -> ScheduledPost:
        r = await self.db.execute(select(ScheduledPost).where(ScheduledPost.id == post_id))
        post = r.scalar_one_or_none()
        if not post:
            raise NotFoundError("post_not_found", "Post not found")
        return post

    async def update_post(self, post_id: UUID, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_POST_FIELDS
        if unknown:
            raise InvalidRequestError("unknown_post_field", f"Cannot update post fields: {sorted(unknown)}")
        post = await self.get_post(post_id)
        for name, value in fields.items():
            setattr(post, name, value)
        post.updated_at = utcnow()
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(detail=str(e)) from e
