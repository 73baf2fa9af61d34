"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app import __version__
from app.logging_config import configure_logging, get_logger
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.routers import (
    approval_router,
    comments_router,
    health_router,
    notifications_router,
    revisions_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging."""
    configure_logging()
    logger.info("app_started", version=__version__)
    yield
    logger.info("app_shutdown")


app = FastAPI(
    title="Post Moderation",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(approval_router)
app.include_router(comments_router)
app.include_router(revisions_router)
app.include_router(notifications_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "post_moderation", "version": __version__}
