"""Post revisions: snapshot, list, restore."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.models import PostRevision
from app.routers.errors import SERVICE_ERRORS, raise_http
from app.schemas.common import ERROR_RESPONSES
from app.schemas.revision import (
    RevisionCreateRequest,
    RevisionListResponse,
    RevisionOut,
    RevisionRestoreRequest,
)
from app.services.content_store import SqlContentStore
from app.services.revision_service import (
    build_revision_summary,
    list_revisions,
    record_revision,
    restore_revision,
    snapshot_post,
)

router = APIRouter(prefix="/approval", tags=["revisions"], responses=ERROR_RESPONSES)


def _revision_out(revision: PostRevision) -> RevisionOut:
    return RevisionOut(
        id=revision.id,
        post_id=revision.post_id,
        revision_number=revision.revision_number,
        actor_id=revision.actor_id,
        snapshot=revision.snapshot,
        metadata=revision.metadata_,
        reason=revision.reason,
        summary=build_revision_summary(revision),
        created_at=revision.created_at,
    )


@router.post(
    "/posts/{post_id}/revisions",
    response_model=RevisionOut,
    status_code=status.HTTP_201_CREATED,
)
async def post_revision(
    post_id: UUID,
    payload: RevisionCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> RevisionOut:
    """Ghi revision; không gửi snapshot thì chụp nội dung hiện tại của post."""
    try:
        snapshot = payload.snapshot
        if snapshot is None:
            snapshot = snapshot_post(await SqlContentStore(db).get_post(post_id))
        revision = await record_revision(
            db,
            post_id=post_id,
            actor_id=payload.actor_id,
            snapshot=snapshot,
            reason=payload.reason,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return _revision_out(revision)


@router.get("/posts/{post_id}/revisions", response_model=RevisionListResponse)
async def get_revisions(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> RevisionListResponse:
    revisions = await list_revisions(db, post_id)
    return RevisionListResponse(post_id=post_id, revisions=[_revision_out(r) for r in revisions])


@router.post("/posts/{post_id}/revisions/{revision_id}/restore", response_model=RevisionOut)
async def post_restore_revision(
    post_id: UUID,
    revision_id: UUID,
    payload: RevisionRestoreRequest,
    db: AsyncSession = Depends(get_db),
) -> RevisionOut:
    """Khôi phục post từ revision; trả về revision mới (reason=restored_version). 404 nếu không có revision."""
    try:
        revision = await restore_revision(
            db,
            post_id=post_id,
            revision_id=revision_id,
            actor_id=payload.actor_id,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return _revision_out(revision)
