"""API route modules."""

from routes.frame_routes import router as frame_router
from routes.health_routes import router as health_router
from routes.payments_routes import router as payments_router
from routes.progress_routes import router as progress_router
from routes.tips_routes import router as tips_router
from routes.users_routes import router as users_router

__all__ = [
    "frame_router",
    "health_router",
    "payments_router",
    "progress_router",
    "tips_router",
    "users_router",
]
