"""Approval workflow definitions: workflow + ordered steps."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base, JsonType, utcnow


class ApprovalWorkflow(Base):
    """
    Workflow = chuỗi step duyệt có thứ tự.
    scope: global | team | user; scope_filters: {"user_ids": [...], "team_ids": [...]}.
    """

    __tablename__ = "approval_workflows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scope: Mapped[str] = mapped_column(String(16), default="global", nullable=False)
    scope_filters: Mapped[Optional[dict]] = mapped_column(JsonType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    steps = relationship(
        "ApprovalWorkflowStep",
        back_populates="workflow",
        order_by="ApprovalWorkflowStep.step_order",
        cascade="all, delete-orphan",
    )


class ApprovalWorkflowStep(Base):
    """One stage of a workflow; needs min_approvals approvals (1 if optional) to advance."""

    __tablename__ = "approval_workflow_steps"
    __table_args__ = (UniqueConstraint("workflow_id", "step_order", name="uq_workflow_steps_order"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    workflow_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("approval_workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    step_name: Mapped[str] = mapped_column(String(256), nullable=False)
    approver_type: Mapped[str] = mapped_column(String(16), nullable=False)  # user | role | team
    approver_reference: Mapped[str] = mapped_column(String(128), nullable=False)
    min_approvals: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # Advisory only: consumed by an external escalation scheduler.
    auto_escalate_after_hours: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sla_hours: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    workflow = relationship("ApprovalWorkflow", back_populates="steps")
