"""
Notification API endpoints.

The feed and the "viewed" state are per device (X-Device-Id header); the
server ``read`` flag is shared by every device.
"""

from fastapi import APIRouter, Depends, Response, status

from app.routers.deps import get_device_id, get_notification_center, get_store
from app.schemas.notification import NotificationFeedResponse
from app.schemas.product import SuccessResponse
from app.services.entity_store import EntityStore
from app.services.notifications import NotificationCenter

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=NotificationFeedResponse)
async def get_feed(
    device_id: str = Depends(get_device_id),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Server notifications followed by the synthetic alerts of the active business."""
    return NotificationFeedResponse(
        items=center.feed(device_id),
        unread_count=center.unread_count(device_id),
    )


@router.post("/open", response_model=NotificationFeedResponse)
async def open_panel(
    device_id: str = Depends(get_device_id),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Mark everything currently listed as viewed on this device; returns the feed as it was shown."""
    items = center.feed(device_id)
    center.open_panel(device_id)
    return NotificationFeedResponse(items=items, unread_count=center.unread_count(device_id))


@router.post("/read-all", response_model=SuccessResponse)
async def mark_all_read(store: EntityStore = Depends(get_store)):
    """Set the server read flag on every notification."""
    await store.mark_all_notifications_read()
    return SuccessResponse(message="Todas las notificaciones marcadas como leídas")


@router.post("/{notification_id}/viewed", response_model=SuccessResponse)
async def mark_viewed(
    notification_id: str,
    device_id: str = Depends(get_device_id),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Mark one notification as viewed on this device only."""
    center.mark_viewed(device_id, notification_id)
    return SuccessResponse(message="Notificación vista")


@router.post("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(notification_id: str, store: EntityStore = Depends(get_store)):
    """Set the server read flag on one notification."""
    await store.mark_notification_read(notification_id)
    return SuccessResponse(message="Notificación marcada como leída")


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, store: EntityStore = Depends(get_store)):
    await store.delete_notification(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_notifications(store: EntityStore = Depends(get_store)):
    await store.clear_notifications()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
