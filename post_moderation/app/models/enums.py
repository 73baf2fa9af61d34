"""Status / action enumerations for the approval workflow (stored as plain strings)."""
import enum


class PostStatus(str, enum.Enum):
    """scheduled_posts.status."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"
    PUBLISHED = "published"
    FAILED = "failed"


class WorkflowScope(str, enum.Enum):
    GLOBAL = "global"
    TEAM = "team"
    USER = "user"


class ApproverType(str, enum.Enum):
    USER = "user"
    ROLE = "role"
    TEAM = "team"


class AssignmentStatus(str, enum.Enum):
    """
    Trạng thái của một assignment.
    pending là trạng thái sống duy nhất; các trạng thái còn lại là terminal.
    approved is kept for rows written by older single-step flows; the engine finishes with completed.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self is not AssignmentStatus.PENDING


class WorkflowAction(str, enum.Enum):
    """Reviewer action accepted by the step advancement engine."""

    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"


class BulkDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class HistoryAction(str, enum.Enum):
    """approval_history.action."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"


class CommentType(str, enum.Enum):
    FEEDBACK = "feedback"
    APPROVAL = "approval"
    REJECTION = "rejection"
    REVISION_REQUEST = "revision_request"


class NotificationChannel(str, enum.Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    SMS = "sms"


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class RuleType(str, enum.Enum):
    CONTENT_APPROVAL = "content_approval"
    TIME_APPROVAL = "time_approval"
    MEDIA_APPROVAL = "media_approval"
    KEYWORD_APPROVAL = "keyword_approval"
