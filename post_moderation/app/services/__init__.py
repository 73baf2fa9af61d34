"""Business logic services."""
from app.services.assignment_service import ensure_workflow_assignment, submit_for_approval
from app.services.workflow_engine import advance_workflow_step, bulk_advance_workflow

__all__ = [
    "ensure_workflow_assignment",
    "submit_for_approval",
    "advance_workflow_step",
    "bulk_advance_workflow",
]
