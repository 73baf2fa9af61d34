"""Live approval state machine instance for one post."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base, JsonType, utcnow


class PostApprovalAssignment(Base):
    """
    Assignment của post vào workflow.
    status: pending | completed | rejected | changes_requested (approved: legacy).
    step_history: [{"step_id", "action", "actor_id", "timestamp"}, ...].
    version tăng mỗi lần ghi; UPDATE ... WHERE version = :read_version (optimistic concurrency).
    """

    __tablename__ = "post_approval_assignments"
    __table_args__ = (
        # At most one live (pending) assignment per post.
        Index(
            "uq_post_approval_assignments_live_post",
            "post_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("scheduled_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workflow_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("approval_workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    current_step_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("approval_workflow_steps.id"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False, index=True)
    step_history: Mapped[List[dict]] = mapped_column(JsonType, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    post = relationship("ScheduledPost", back_populates="assignments")
    workflow = relationship("ApprovalWorkflow")
    current_step = relationship("ApprovalWorkflowStep")
