"""
API routers for the application.
"""

from fastapi import APIRouter, Depends
from app.routers import auth, businesses, products, images, notifications, dashboard
from app.routers.deps import require_session

api_router = APIRouter()

# Public
api_router.include_router(auth.router)

# Everything else needs a session
private = [Depends(require_session)]
api_router.include_router(businesses.router, dependencies=private)
api_router.include_router(products.router, dependencies=private)
api_router.include_router(images.router, dependencies=private)
api_router.include_router(notifications.router, dependencies=private)
api_router.include_router(dashboard.router, dependencies=private)

__all__ = ["api_router", "auth", "businesses", "products", "images", "notifications", "dashboard"]
