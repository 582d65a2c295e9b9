"""
Dashboard summary endpoint.
"""

from fastapi import APIRouter, Depends

from app.routers.deps import get_store
from app.schemas.dashboard import DashboardResponse
from app.services.catalog import dashboard_summary
from app.services.entity_store import EntityStore

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(store: EntityStore = Depends(get_store)):
    """Counters, the latest products and the active business."""
    return dashboard_summary(store)
