"""Immutable content snapshots of a post."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base, JsonType, utcnow


class PostRevision(Base):
    """
    Snapshot {content?, media_urls?, scheduled_at?}; metadata có thể chứa restored_from.
    Append-only: restore tạo revision mới, không sửa revision cũ.
    """

    __tablename__ = "post_revisions"
    __table_args__ = (UniqueConstraint("post_id", "revision_number", name="uq_post_revisions_number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("scheduled_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    revision_number: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_id: Mapped[str] = mapped_column(String(128), nullable=False)
    snapshot: Mapped[dict] = mapped_column(JsonType, nullable=False)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JsonType, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    post = relationship("ScheduledPost", back_populates="revisions")
