"""SQLAlchemy models for the post moderation service."""
from app.models.scheduled_post import ScheduledPost
from app.models.approval_workflow import ApprovalWorkflow, ApprovalWorkflowStep
from app.models.approval_workflow_rule import ApprovalWorkflowRule
from app.models.post_approval_assignment import PostApprovalAssignment
from app.models.approval_history import ApprovalHistory
from app.models.approval_comment import ApprovalComment
from app.models.post_revision import PostRevision
from app.models.approval_notification import ApprovalNotification

__all__ = [
    "ScheduledPost",
    "ApprovalWorkflow",
    "ApprovalWorkflowStep",
    "ApprovalWorkflowRule",
    "PostApprovalAssignment",
    "ApprovalHistory",
    "ApprovalComment",
    "PostRevision",
    "ApprovalNotification",
]
