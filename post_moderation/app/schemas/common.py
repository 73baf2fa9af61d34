"""Error body shared by all routers: {"detail": {"code": ..., "message": ...}}."""
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Mã lỗi máy đọc được, vd. assignment_not_found")
    message: str = Field(..., description="Mô tả cho người đọc")


class ErrorResponse(BaseModel):
    """Body của 400 / 404 / 409 / 503."""

    detail: ErrorDetail


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Concurrent modification"},
    503: {"model": ErrorResponse, "description": "Storage unavailable"},
}
