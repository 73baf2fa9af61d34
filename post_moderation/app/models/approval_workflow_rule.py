"""Per-user rules deciding whether a post needs approval at all."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base, JsonType, utcnow


class ApprovalWorkflowRule(Base):
    """
    rule_type: content_approval | time_approval | media_approval | keyword_approval.
    conditions (JSON): max_length, keywords, require_approval_with_media, business_hours_only, forbidden_keywords.
    """

    __tablename__ = "approval_workflow_rules"
    __table_args__ = (UniqueConstraint("user_id", "rule_name", name="uq_approval_rules_user_name"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    rule_name: Mapped[str] = mapped_column(String(256), nullable=False)
    rule_type: Mapped[str] = mapped_column(String(32), default="content_approval", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    conditions: Mapped[dict] = mapped_column(JsonType, nullable=False, default=dict)
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    approver_user_ids: Mapped[Optional[List[str]]] = mapped_column(JsonType, nullable=True)
    auto_approve_after_hours: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
