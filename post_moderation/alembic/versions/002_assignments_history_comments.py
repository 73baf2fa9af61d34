"""Post approval assignments, approval history, comments

Revision ID: 002
Revises: 001
Create Date: 2026-09-01

- post_approval_assignments: version (optimistic concurrency),
  partial unique index = tối đa một assignment pending cho mỗi post
- approval_history (append-only)
- approval_comments (thread_id = id của comment gốc)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "post_approval_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workflow_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("current_step_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(32), server_default="pending", nullable=False),
        sa.Column("step_history", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["scheduled_posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_id"], ["approval_workflows.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["current_step_id"], ["approval_workflow_steps.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_approval_assignments_post_id", "post_approval_assignments", ["post_id"])
    op.create_index("ix_post_approval_assignments_workflow_id", "post_approval_assignments", ["workflow_id"])
    op.create_index("ix_post_approval_assignments_status", "post_approval_assignments", ["status"])
    op.create_index(
        "uq_post_approval_assignments_live_post",
        "post_approval_assignments",
        ["post_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "approval_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", sa.String(128), nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("action_details", postgresql.JSONB(), nullable=True),
        sa.Column("workflow_step_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("previous_status", sa.String(32), nullable=True),
        sa.Column("new_status", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["scheduled_posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_step_id"], ["approval_workflow_steps.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approval_history_post_id", "approval_history", ["post_id"])
    op.create_index("ix_approval_history_actor_id", "approval_history", ["actor_id"])
    op.create_index("ix_approval_history_action", "approval_history", ["action"])
    op.create_index("ix_approval_history_created_at", "approval_history", ["created_at"])

    op.create_table(
        "approval_comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", sa.String(128), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("comment_type", sa.String(32), server_default="feedback", nullable=False),
        sa.Column("parent_comment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("thread_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_resolved", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("resolved_by", sa.String(128), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_comment", sa.Text(), nullable=True),
        sa.Column("mentions", postgresql.JSONB(), nullable=True),
        sa.Column("workflow_step_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["scheduled_posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_comment_id"], ["approval_comments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_step_id"], ["approval_workflow_steps.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approval_comments_post_id", "approval_comments", ["post_id"])
    op.create_index("ix_approval_comments_actor_id", "approval_comments", ["actor_id"])
    op.create_index("ix_approval_comments_thread_id", "approval_comments", ["thread_id"])


def downgrade() -> None:
    op.drop_index("ix_approval_comments_thread_id", table_name="approval_comments")
    op.drop_index("ix_approval_comments_actor_id", table_name="approval_comments")
    op.drop_index("ix_approval_comments_post_id", table_name="approval_comments")
    op.drop_table("approval_comments")
    op.drop_index("ix_approval_history_created_at", table_name="approval_history")
    op.drop_index("ix_approval_history_action", table_name="approval_history")
    op.drop_index("ix_approval_history_actor_id", table_name="approval_history")
    op.drop_index("ix_approval_history_post_id", table_name="approval_history")
    op.drop_table("approval_history")
    op.drop_index("uq_post_approval_assignments_live_post", table_name="post_approval_assignments")
    op.drop_index("ix_post_approval_assignments_status", table_name="post_approval_assignments")
    op.drop_index("ix_post_approval_assignments_workflow_id", table_name="post_approval_assignments")
    op.drop_index("ix_post_approval_assignments_post_id", table_name="post_approval_assignments")
    op.drop_table("post_approval_assignments")
