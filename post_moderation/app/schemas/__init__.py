"""Pydantic request/response schemas."""
from app.schemas.common import ERROR_RESPONSES, ErrorDetail, ErrorResponse
from app.schemas.approval import (
    ApprovalCheckRequest,
    ApprovalCheckResponse,
    ApprovalRuleCreate,
    ApprovalRuleOut,
    AssignmentOut,
    BulkRequest,
    BulkResponse,
    ReviewActionRequest,
    SubmitRequest,
    SubmitResponse,
    WorkflowCreateRequest,
    WorkflowOut,
)
from app.schemas.comment import CommentCreateRequest, CommentOut, CommentResolveRequest
from app.schemas.revision import RevisionCreateRequest, RevisionOut, RevisionRestoreRequest
from app.schemas.notification import MarkReadRequest, NotificationOut

__all__ = [
    "ErrorResponse",
    "ErrorDetail",
    "ERROR_RESPONSES",
    "ApprovalCheckRequest",
    "ApprovalCheckResponse",
    "ApprovalRuleCreate",
    "ApprovalRuleOut",
    "AssignmentOut",
    "BulkRequest",
    "BulkResponse",
    "ReviewActionRequest",
    "SubmitRequest",
    "SubmitResponse",
    "WorkflowCreateRequest",
    "WorkflowOut",
    "CommentCreateRequest",
    "CommentOut",
    "CommentResolveRequest",
    "RevisionCreateRequest",
    "RevisionOut",
    "RevisionRestoreRequest",
    "MarkReadRequest",
    "NotificationOut",
]
