"""Approval workflows, steps, rules + scheduled posts

Revision ID: 001
Revises:
Create Date: 2026-09-01

- approval_workflows, approval_workflow_steps (UNIQUE(workflow_id, step_order))
- approval_workflow_rules
- scheduled_posts (content store backing table)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "approval_workflows",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scope", sa.String(16), server_default="global", nullable=False),
        sa.Column("scope_filters", postgresql.JSONB(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approval_workflows_owner_id", "approval_workflows", ["owner_id"])

    op.create_table(
        "approval_workflow_steps",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workflow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("step_name", sa.String(256), nullable=False),
        sa.Column("approver_type", sa.String(16), nullable=False),
        sa.Column("approver_reference", sa.String(128), nullable=False),
        sa.Column("min_approvals", sa.Integer(), server_default="1", nullable=False),
        sa.Column("auto_escalate_after_hours", sa.Integer(), nullable=True),
        sa.Column("is_optional", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("sla_hours", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["workflow_id"], ["approval_workflows.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_id", "step_order", name="uq_workflow_steps_order"),
        sa.CheckConstraint("min_approvals >= 1", name="ck_workflow_steps_min_approvals"),
    )
    op.create_index("ix_approval_workflow_steps_workflow_id", "approval_workflow_steps", ["workflow_id"])

    op.create_table(
        "approval_workflow_rules",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("rule_name", sa.String(256), nullable=False),
        sa.Column("rule_type", sa.String(32), server_default="content_approval", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("conditions", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("requires_approval", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("approver_user_ids", postgresql.JSONB(), nullable=True),
        sa.Column("auto_approve_after_hours", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "rule_name", name="uq_approval_rules_user_name"),
    )
    op.create_index("ix_approval_workflow_rules_user_id", "approval_workflow_rules", ["user_id"])

    op.create_table(
        "scheduled_posts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("team_id", sa.String(128), nullable=True),
        sa.Column("content", sa.Text(), server_default="", nullable=False),
        sa.Column("media_urls", postgresql.JSONB(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(32), server_default="draft", nullable=False),
        sa.Column("requires_approval", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("submitted_for_approval_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(128), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(128), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("approval_workflow_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["approval_workflow_id"], ["approval_workflows.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scheduled_posts_user_id", "scheduled_posts", ["user_id"])
    op.create_index("ix_scheduled_posts_status", "scheduled_posts", ["status"])


def downgrade() -> None:
    op.drop_index("ix_scheduled_posts_status", table_name="scheduled_posts")
    op.drop_index("ix_scheduled_posts_user_id", table_name="scheduled_posts")
    op.drop_table("scheduled_posts")
    op.drop_index("ix_approval_workflow_rules_user_id", table_name="approval_workflow_rules")
    op.drop_table("approval_workflow_rules")
    op.drop_index("ix_approval_workflow_steps_workflow_id", table_name="approval_workflow_steps")
    op.drop_table("approval_workflow_steps")
    op.drop_index("ix_approval_workflows_owner_id", table_name="approval_workflows")
    op.drop_table("approval_workflows")
