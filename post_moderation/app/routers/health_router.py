"""Health: /health (liveness), /readyz (DB reachable)."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.logging_config import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
def health() -> dict[str, str]:
    """Health check for load balancer / Docker."""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(db: AsyncSession = Depends(get_db)):
    """Readiness: DB sẵn sàng. 200 OK, 503 nếu lỗi."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("readyz.db_fail", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unhealthy", "db": "fail"})
    return {"status": "ok", "db": "ok"}
