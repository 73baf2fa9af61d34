"""API routers."""
from app.routers.health_router import router as health_router
from app.routers.approval_router import router as approval_router
from app.routers.comments_router import router as comments_router
from app.routers.revisions_router import router as revisions_router
from app.routers.notifications_router import router as notifications_router

__all__ = [
    "health_router",
    "approval_router",
    "comments_router",
    "revisions_router",
    "notifications_router",
]
