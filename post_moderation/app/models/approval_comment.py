"""Threaded review comments on a post."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base, JsonType, utcnow


class ApprovalComment(Base):
    """
    Comment trong luồng duyệt.
    Root comment: thread_id == id. Reply: thread_id == thread_id của parent.
    comment_type: feedback | approval | rejection | revision_request.
    """

    __tablename__ = "approval_comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("scheduled_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    comment_type: Mapped[str] = mapped_column(String(32), default="feedback", nullable=False)
    parent_comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("approval_comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    thread_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mentions: Mapped[Optional[List[str]]] = mapped_column(JsonType, nullable=True)
    workflow_step_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("approval_workflow_steps.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    post = relationship("ScheduledPost", back_populates="comments")
