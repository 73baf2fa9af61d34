"""
Revision snapshots: ghi lại nội dung post và khôi phục từ snapshot.
Append-only; restore ghi vào post rồi tạo revision mới (metadata.restored_from).
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ConcurrencyConflictError, InvalidRequestError, NotFoundError, PersistenceError
from app.logging_config import get_logger
from app.models import PostRevision
from app.services.content_store import ContentStore, SqlContentStore

logger = get_logger(__name__)

RESTORED_REASON = "restored_version"
SUMMARY_MAX_CHARS = 80
SUMMARY_KEEP_CHARS = 77


class RevisionSnapshot(BaseModel):
    """Các field của post được lưu trong một revision."""

    model_config = ConfigDict(extra="forbid")

    content: Optional[str] = None
    media_urls: Optional[List[str]] = None
    scheduled_at: Optional[datetime] = None

    def present_fields(self) -> Dict[str, Any]:
        """Non-null fields only; these are what a restore writes back."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


def parse_snapshot(raw: Any) -> RevisionSnapshot:
    if isinstance(raw, RevisionSnapshot):
        return raw
    try:
        return RevisionSnapshot.model_validate(raw or {})
    except ValidationError as e:
        raise InvalidRequestError("invalid_snapshot", str(e)) from None


def snapshot_post(post: Any) -> RevisionSnapshot:
    """Snapshot of the live post."""
    return RevisionSnapshot(
        content=post.content,
        media_urls=list(post.media_urls) if post.media_urls is not None else None,
        scheduled_at=post.scheduled_at,
    )


def build_revision_summary(revision: PostRevision) -> str:
    """Content rút gọn (quá 80 ký tự -> 77 ký tự + "…"), nếu không có thì reason, cuối cùng 'Revision #n'."""
    content = (revision.snapshot or {}).get("content")
    if content:
        text = re.sub(r"\s+", " ", content).strip()
        if text:
            if len(text) > SUMMARY_MAX_CHARS:
                return text[:SUMMARY_KEEP_CHARS] + "…"
            return text
    if revision.reason:
        return revision.reason
    return f"Revision #{revision.revision_number}"


async def _next_revision_number(db: AsyncSession, post_id: UUID) -> int:
    r = await db.execute(
        select(func.coalesce(func.max(PostRevision.revision_number), 0)).where(PostRevision.post_id == post_id)
    )
    return int(r.scalar_one()) + 1


async def record_revision(
    db: AsyncSession,
    post_id: UUID,
    actor_id: str,
    snapshot: Any,
    metadata: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
    content_store: Optional[ContentStore] = None,
) -> PostRevision:
    """Append a revision; revision_number = previous max + 1."""
    if not actor_id:
        raise InvalidRequestError("actor_id_required", "actor_id is required")
    snap = parse_snapshot(snapshot)
    store = content_store or SqlContentStore(db)
    await store.get_post(post_id)

    revision = PostRevision(
        post_id=post_id,
        revision_number=await _next_revision_number(db, post_id),
        actor_id=actor_id,
        snapshot=snap.model_dump(mode="json", exclude_none=True),
        metadata_=metadata,
        reason=reason,
    )
    db.add(revision)
    try:
        await db.flush()
    except IntegrityError as e:
        # uq_post_revisions_number: another writer took this revision_number.
        raise ConcurrencyConflictError("Revision number was taken by a concurrent write") from e
    except SQLAlchemyError as e:
        raise PersistenceError(detail=str(e)) from e
    logger.info(
        "revision.recorded",
        post_id=str(post_id),
        revision_id=str(revision.id),
        revision_number=revision.revision_number,
    )
    return revision


async def get_revision(db: AsyncSession, post_id: UUID, revision_id: UUID) -> PostRevision:
    r = await db.execute(
        select(PostRevision).where(PostRevision.id == revision_id, PostRevision.post_id == post_id)
    )
    revision = r.scalar_one_or_none()
    if not revision:
        raise NotFoundError("revision_not_found", "Revision not found")
    return revision


async def restore_revision(
    db: AsyncSession,
    post_id: UUID,
    revision_id: UUID,
    actor_id: str,
    content_store: Optional[ContentStore] = None,
) -> PostRevision:
    """
    Khôi phục post từ revision. Revision không tồn tại (hoặc thuộc post khác) -> NotFoundError, không ghi gì.
    Chỉ các field có giá trị trong snapshot được ghi lại; trả về revision mới.
    """
    if not actor_id:
        raise InvalidRequestError("actor_id_required", "actor_id is required")
    store = content_store or SqlContentStore(db)
    source = await get_revision(db, post_id, revision_id)
    snap = parse_snapshot(source.snapshot)
    fields = snap.present_fields()
    if fields:
        await store.update_post(post_id, fields)

    restored = await record_revision(
        db,
        post_id=post_id,
        actor_id=actor_id,
        snapshot=snap,
        metadata={"restored_from": str(revision_id)},
        reason=RESTORED_REASON,
        content_store=store,
    )
    logger.info(
        "revision.restored",
        post_id=str(post_id),
        restored_from=str(revision_id),
        fields=sorted(fields),
    )
    return restored


async def list_revisions(db: AsyncSession, post_id: UUID) -> List[PostRevision]:
    """Chronological (revision_number asc)."""
    r = await db.execute(
        select(PostRevision)
        .where(PostRevision.post_id == post_id)
        .order_by(PostRevision.revision_number.asc())
    )
    return list(r.scalars().all())
