"""Audit trail model: one append-only row per workflow action."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base, JsonType, utcnow


class ApprovalHistory(Base):
    """
    Audit log cho workflow: submitted, approved, rejected, revision_requested.
    action_details: null hoặc {"comment": str|null, "reason": str|null}. Không bao giờ update/delete.
    """

    __tablename__ = "approval_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("scheduled_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    action_details: Mapped[Optional[dict]] = mapped_column(JsonType, nullable=True)
    workflow_step_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("approval_workflow_steps.id"),
        nullable=True,
    )
    previous_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    new_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )
