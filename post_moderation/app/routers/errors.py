"""Map service errors to HTTPException (404 / 400 / 409 / 503)."""
from typing import NoReturn

from fastapi import HTTPException, status

from app.errors import ConcurrencyConflictError, InvalidRequestError, NotFoundError, PersistenceError
from app.logging_config import get_logger

logger = get_logger(__name__)


def raise_http(e: Exception) -> NoReturn:
    """Re-raise a service error as HTTPException; anything unknown propagates unchanged."""
    if isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, InvalidRequestError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, ConcurrencyConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, PersistenceError):
        logger.error("approval.persistence_error", code=e.code, detail=e.detail)
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        raise e
    raise HTTPException(status_code=code, detail={"code": e.code, "message": e.detail}) from e


SERVICE_ERRORS = (NotFoundError, InvalidRequestError, PersistenceError)
