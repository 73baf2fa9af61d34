"""
Error taxonomy cho approval workflow.

NotFoundError / InvalidRequestError kế thừa ValueError và mang mã máy
(str(e) == "assignment_not_found"), router map sang HTTP status.
PersistenceError bọc lỗi đọc/ghi backing store.
"""
from typing import Optional


class NotFoundError(ValueError):
    """Missing assignment, workflow, post, comment or revision."""

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail or code.replace("_", " ").capitalize()


class InvalidRequestError(ValueError):
    """Malformed action or missing required identifiers."""

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail or code.replace("_", " ").capitalize()


class IllegalTransitionError(InvalidRequestError):
    """Assignment status change outside the allowed state machine edges."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            "illegal_transition",
            f"Cannot move assignment from {from_status} to {to_status}",
        )
        self.from_status = from_status
        self.to_status = to_status


class PersistenceError(Exception):
    """Backing-store read/write failure."""

    def __init__(self, code: str = "persistence_error", detail: Optional[str] = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail or "Storage operation failed"


class ConcurrencyConflictError(PersistenceError):
    """Optimistic version check kept failing after the configured retries."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__("concurrency_conflict", detail or "Assignment was modified concurrently")
