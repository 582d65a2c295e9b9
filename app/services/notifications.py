"""
Notification feed.

Combines the server notifications cached by the EntityStore with synthetic
alerts computed from the active business' products, and tracks per device
which entries have been seen. The device-local "viewed" state never touches
the server ``read`` flag.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set

from app.core.ids import utcnow
from app.core.local_storage import LocalStorage
from app.schemas.business import Business
from app.schemas.notification import FeedItem, Notification
from app.schemas.product import Product

logger = logging.getLogger(__name__)

RECENT_PRODUCTS = "recent-products"
SOLD_PRODUCTS = "sold-products"
NOT_POSTED = "not-posted"
NO_PRODUCTS = "no-products"

RECENT_WINDOW = timedelta(days=7)

VIEWED_NOTIFICATIONS_KEY = "viewedNotificationIds"
VIEWED_STATIC_KEY = "viewedStaticNotifications"
STATIC_HASH_KEY = "lastStaticNotificationsHash"

_KIND_BY_TYPE = {
    "product_added": "info",
    "product_sold": "success",
    "business_added": "info",
    "product_updated": "info",
}


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


@dataclass(frozen=True)
class ProductSummary:
    """Counts the synthetic alerts are computed from"""
    business_id: str
    total: int
    recent: int
    sold: int
    not_posted: int

    @property
    def input_hash(self) -> str:
        return f"{self.business_id}-recent:{self.recent}-sold:{self.sold}"


def summarize_products(
    business: Optional[Business],
    products: Iterable[Product],
    now: Optional[datetime] = None,
) -> Optional[ProductSummary]:
    if business is None:
        return None

    now = now or utcnow()
    owned = [p for p in products if p.business_id == business.id]
    return ProductSummary(
        business_id=business.id,
        total=len(owned),
        recent=sum(1 for p in owned if now - p.created_at <= RECENT_WINDOW),
        sold=sum(1 for p in owned if p.status == "sold"),
        not_posted=sum(1 for p in owned if p.status == "available" and not p.posted_to_marketplace),
    )


def build_synthetic_notifications(summary: Optional[ProductSummary], viewed: Set[str]) -> List[FeedItem]:
    """
    Derived alerts for the active business.

    Entries already viewed on this device are left out, except the
    "no products" alert which shows whenever it applies.
    """
    items: List[FeedItem] = []
    if summary is None:
        return items

    if summary.recent > 0 and RECENT_PRODUCTS not in viewed:
        n = summary.recent
        items.append(FeedItem(
            id=RECENT_PRODUCTS,
            kind="info",
            title="Productos recientes",
            message=f"{n} {_plural(n, 'producto')} {_plural(n, 'agregado')} esta semana",
            link="/products",
        ))

    if summary.sold > 0 and SOLD_PRODUCTS not in viewed:
        n = summary.sold
        items.append(FeedItem(
            id=SOLD_PRODUCTS,
            kind="success",
            title="Productos vendidos",
            message=f"{n} {_plural(n, 'producto')} {_plural(n, 'marcado')} como {_plural(n, 'vendido')}",
            link="/products",
        ))

    if summary.not_posted > 0 and NOT_POSTED not in viewed:
        n = summary.not_posted
        items.append(FeedItem(
            id=NOT_POSTED,
            kind="warning",
            title="Pendientes de publicar",
            message=f"{n} {_plural(n, 'producto')} {_plural(n, 'disponible')} sin publicar en Marketplace",
            link="/products",
        ))

    if summary.total == 0:
        items.append(FeedItem(
            id=NO_PRODUCTS,
            kind="info",
            title="Sin productos",
            message="Comienza agregando tu primer producto",
            link="/products/new",
        ))

    return items


class NotificationReadTracker:
    """Device-local viewed sets, stored under keys namespaced by device id."""

    def __init__(self, storage: LocalStorage, device_id: str):
        self._storage = storage
        self.device_id = device_id

    def _key(self, name: str) -> str:
        return f"{self.device_id}:{name}"

    def _load_set(self, name: str) -> Set[str]:
        raw = self._storage.get_item(self._key(name))
        if not raw:
            return set()
        try:
            return set(json.loads(raw))
        except (ValueError, TypeError):
            logger.warning(f"Discarding unreadable {name} for device {self.device_id}")
            return set()

    def viewed_notifications(self) -> Set[str]:
        return self._load_set(VIEWED_NOTIFICATIONS_KEY)

    def viewed_static(self) -> Set[str]:
        return self._load_set(VIEWED_STATIC_KEY)

    def sync_inputs(self, input_hash: str) -> None:
        """Forget viewed synthetic alerts when the values behind them changed."""
        last_hash = self._storage.get_item(self._key(STATIC_HASH_KEY))
        if last_hash == input_hash:
            return
        if last_hash:
            self._storage.remove_item(self._key(VIEWED_STATIC_KEY))
        self._storage.set_item(self._key(STATIC_HASH_KEY), input_hash)

    def mark_viewed(self, notification_ids: Iterable[str], static_ids: Iterable[str] = ()) -> None:
        """Add ids to the viewed sets, written in a single batch."""
        viewed = self.viewed_notifications()
        viewed_static = self.viewed_static()
        new_viewed = viewed | set(notification_ids)
        new_static = viewed_static | {i for i in static_ids if i != NO_PRODUCTS}

        updates = {}
        if new_viewed != viewed:
            updates[self._key(VIEWED_NOTIFICATIONS_KEY)] = json.dumps(sorted(new_viewed))
        if new_static != viewed_static:
            updates[self._key(VIEWED_STATIC_KEY)] = json.dumps(sorted(new_static))
        if updates:
            self._storage.set_items(updates)


class NotificationCenter:
    """Builds the per-device feed from the store and the local storage."""

    def __init__(self, store, storage: LocalStorage):
        self._store = store
        self._storage = storage

    def tracker(self, device_id: str) -> NotificationReadTracker:
        return NotificationReadTracker(self._storage, device_id)

    def synthetic(self, device_id: str, now: Optional[datetime] = None) -> List[FeedItem]:
        tracker = self.tracker(device_id)
        summary = summarize_products(self._store.active_business, self._store.products, now)
        tracker.sync_inputs(summary.input_hash if summary else "")
        return build_synthetic_notifications(summary, tracker.viewed_static())

    def feed(self, device_id: str, now: Optional[datetime] = None) -> List[FeedItem]:
        """
        Server notifications newest first, then the synthetic alerts in
        generation order.
        """
        synthetic = self.synthetic(device_id, now)
        viewed = self.tracker(device_id).viewed_notifications()

        server_items = [
            _server_item(n, unread=n.id not in viewed)
            for n in sorted(self._store.notifications, key=lambda n: n.timestamp, reverse=True)
        ]
        # Synthetic entries only show while not viewed, so they count as unread
        synthetic_items = [item.model_copy(update={"unread": True}) for item in synthetic]
        return server_items + synthetic_items

    def unread_count(self, device_id: str) -> int:
        viewed = self.tracker(device_id).viewed_notifications()
        return sum(1 for n in self._store.notifications if n.id not in viewed)

    def open_panel(self, device_id: str, now: Optional[datetime] = None) -> None:
        """Mark everything currently listed as viewed on this device."""
        synthetic = self.synthetic(device_id, now)
        self.tracker(device_id).mark_viewed(
            (n.id for n in self._store.notifications),
            (item.id for item in synthetic),
        )

    def mark_viewed(self, device_id: str, notification_id: str) -> None:
        self.tracker(device_id).mark_viewed([notification_id])


def _server_item(notification: Notification, unread: bool) -> FeedItem:
    return FeedItem(
        id=notification.id,
        kind=_KIND_BY_TYPE.get(notification.type, "info"),
        title=notification.title,
        message=notification.message,
        link=notification.link,
        timestamp=notification.timestamp,
        is_realtime=True,
        read=notification.read,
        unread=unread,
    )
