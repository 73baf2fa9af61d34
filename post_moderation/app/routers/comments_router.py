"""Review comment threads trên post."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.routers.errors import SERVICE_ERRORS, raise_http
from app.schemas.common import ERROR_RESPONSES
from app.schemas.comment import CommentCreateRequest, CommentListResponse, CommentOut, CommentResolveRequest
from app.services.comment_service import create_comment, get_approval_comments, resolve_comment

router = APIRouter(prefix="/approval", tags=["comments"], responses=ERROR_RESPONSES)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
)
async def post_comment(
    post_id: UUID,
    payload: CommentCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> CommentOut:
    """Comment gốc mở thread mới; reply (parent_comment_id) dùng thread của parent."""
    try:
        comment = await create_comment(
            db,
            post_id=post_id,
            actor_id=payload.actor_id,
            body=payload.body,
            parent_comment_id=payload.parent_comment_id,
            comment_type=payload.comment_type.value,
            mentions=payload.mentions,
            step_id=payload.workflow_step_id,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return CommentOut.model_validate(comment)


@router.get("/posts/{post_id}/comments", response_model=CommentListResponse)
async def get_comments(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    comments = await get_approval_comments(db, post_id)
    return CommentListResponse(post_id=post_id, comments=[CommentOut.model_validate(c) for c in comments])


@router.post("/comments/{comment_id}/resolve", response_model=CommentOut)
async def post_resolve_comment(
    comment_id: UUID,
    payload: CommentResolveRequest,
    db: AsyncSession = Depends(get_db),
) -> CommentOut:
    try:
        comment = await resolve_comment(
            db,
            comment_id=comment_id,
            resolver_id=payload.resolver_id,
            resolution_text=payload.resolution_text,
        )
    except SERVICE_ERRORS as e:
        raise_http(e)
    return CommentOut.model_validate(comment)
