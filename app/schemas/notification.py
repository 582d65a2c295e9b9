"""
Pydantic schemas for notifications: server rows, app entities and the combined feed.
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


NotificationType = Literal["product_added", "product_updated", "product_sold", "business_added"]
FeedKind = Literal["info", "success", "warning"]


class NotificationRow(BaseModel):
    """Row of the notifications table."""
    id: str
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    business_id: Optional[str] = None
    product_id: Optional[str] = None
    read: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Notification(BaseModel):
    """Server notification as seen by the application."""
    id: str
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    timestamp: datetime
    read: bool = False

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FeedItem(BaseModel):
    """
    One entry of the combined notification feed.

    Synthetic entries have no timestamp. ``unread`` is the device-local
    predicate and is independent of the server ``read`` flag.
    """
    id: str
    kind: FeedKind
    title: str
    message: str
    link: Optional[str] = None
    timestamp: Optional[datetime] = None
    is_realtime: bool = False
    read: bool = False
    unread: bool = False

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationFeedResponse(BaseModel):
    items: List[FeedItem]
    unread_count: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
