"""
Entity Store.

In-memory mirror of businesses, products and server notifications, kept in
step with the database by an initial bulk load plus realtime change events.

Local writes and pushed events go through the same merge routines
(``_upsert`` / ``_remove``), so the copy that arrives second is absorbed as a
no-op and both paths converge on the same cache.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from app.core.exceptions import RecordNotFoundError, RemoteStoreError, RemoteWriteError, SubscriptionError
from app.core.ids import generate_id
from app.core.realtime import ChangeEvent, ChangeFeed, Subscription, DELETE, INSERT, UPDATE
from app.schemas.business import Business, BusinessCreate, BusinessRow, BusinessUpdate
from app.schemas.notification import Notification, NotificationRow
from app.schemas.product import Product, ProductCreate, ProductRow, ProductUpdate
from app.services.active_business import ActiveBusinessSelector
from app.services.image_storage import ImageStorage
from app.services.mappers import (
    business_from_row,
    business_patch_to_row,
    notification_from_row,
    product_from_row,
    product_patch_to_row,
)
from app.services.remote_database import RemoteDatabase

logger = logging.getLogger(__name__)

BUSINESSES = "businesses"
PRODUCTS = "products"
NOTIFICATIONS = "notifications"


class EntityStore:
    """Cache of the three collections plus the commands and queries over them."""

    def __init__(
        self,
        database: RemoteDatabase,
        feed: ChangeFeed,
        images: ImageStorage,
        selector: ActiveBusinessSelector,
        notification_limit: int = 100,
        load_timeout: float = 5.0,
    ):
        self._database = database
        self._feed = feed
        self._images = images
        self._selector = selector
        self._notification_limit = notification_limit
        self._load_timeout = load_timeout

        self._collections: Dict[str, list] = {BUSINESSES: [], PRODUCTS: [], NOTIFICATIONS: []}
        # Ids are never reused, so a deleted id must not come back through a late INSERT
        self._deleted: Dict[str, Set[str]] = {BUSINESSES: set(), PRODUCTS: set(), NOTIFICATIONS: set()}
        self._subscriptions: List[Subscription] = []

        self.loaded = False
        self.live = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def businesses(self) -> List[Business]:
        return list(self._collections[BUSINESSES])

    @property
    def products(self) -> List[Product]:
        return list(self._collections[PRODUCTS])

    @property
    def notifications(self) -> List[Notification]:
        return list(self._collections[NOTIFICATIONS])

    @property
    def active_business(self) -> Optional[Business]:
        return self._selector.active

    def set_active_business(self, business_id: str) -> str:
        """Make a cached business the active one; returns the acknowledgment message."""
        business = self.get_business_by_id(business_id)
        if business is None:
            raise RecordNotFoundError("Business", business_id)
        return self._selector.select(business)

    # ------------------------------------------------------------------
    # Load and sync
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Bulk load all three collections.

        A failing collection stays empty. The whole load is bounded by the
        load timeout; whatever has not finished by then is abandoned.
        """
        loaders = {
            BUSINESSES: self._database.fetch_businesses(),
            PRODUCTS: self._database.fetch_products(),
            NOTIFICATIONS: self._database.fetch_notifications(self._notification_limit),
        }
        tasks = {asyncio.ensure_future(coro): table for table, coro in loaders.items()}
        done, pending = await asyncio.wait(list(tasks), timeout=self._load_timeout)

        for task in pending:
            task.cancel()
            logger.warning(f"Loading {tasks[task]} timed out, continuing without it")

        for task in done:
            table = tasks[task]
            try:
                rows = task.result()
                self._collections[table] = self._map_rows(table, rows)
            except Exception as e:
                logger.error(f"Error loading {table}: {e}")
                self._collections[table] = []

        self._selector.restore(self._collections[BUSINESSES])
        self.loaded = True
        logger.info(
            f"Store loaded: {len(self._collections[BUSINESSES])} businesses, "
            f"{len(self._collections[PRODUCTS])} products, "
            f"{len(self._collections[NOTIFICATIONS])} notifications"
        )

    def start_sync(self) -> bool:
        """Join the change streams. Returns False when running without live updates."""
        handlers = {
            BUSINESSES: self._on_business_change,
            PRODUCTS: self._on_product_change,
            NOTIFICATIONS: self._on_notification_change,
        }
        try:
            for table, handler in handlers.items():
                self._subscriptions.append(self._feed.subscribe(table, handler))
        except SubscriptionError as e:
            logger.warning(f"Realtime subscription failed, continuing without live updates: {e}")
            self.stop_sync()
            return False

        self.live = True
        return True

    def stop_sync(self) -> None:
        for subscription in self._subscriptions:
            self._feed.unsubscribe(subscription)
        self._subscriptions = []
        self.live = False

    def _map_rows(self, table: str, rows: list) -> list:
        if table == BUSINESSES:
            return [business_from_row(row) for row in rows]
        if table == PRODUCTS:
            return [product_from_row(row) for row in rows]
        return [notification_from_row(row) for row in rows][:self._notification_limit]

    # ------------------------------------------------------------------
    # Merge rules
    # ------------------------------------------------------------------

    def _upsert(self, table: str, record, insert: bool) -> bool:
        """
        Merge one record by id. Returns True when the cache changed.

        Existing records are replaced unless the incoming copy is older;
        unknown ids are only added when ``insert`` is set.
        """
        if record.id in self._deleted[table]:
            return False

        items = self._collections[table]
        for index, existing in enumerate(items):
            if existing.id != record.id:
                continue
            if _is_older(record, existing) or existing == record:
                return False
            items[index] = record
            return True

        if not insert:
            return False

        items.insert(0, record)
        if table == NOTIFICATIONS:
            del items[self._notification_limit:]
        return True

    def _remove(self, table: str, record_id: str) -> bool:
        self._deleted[table].add(record_id)
        items = self._collections[table]
        remaining = [item for item in items if item.id != record_id]
        changed = len(remaining) != len(items)
        self._collections[table] = remaining
        return changed

    def _remove_business(self, business_id: str, with_products: bool = False) -> None:
        self._remove(BUSINESSES, business_id)
        if with_products:
            owned = [p.id for p in self._collections[PRODUCTS] if p.business_id == business_id]
            self._deleted[PRODUCTS].update(owned)
            self._collections[PRODUCTS] = [
                p for p in self._collections[PRODUCTS] if p.business_id != business_id
            ]
        self._selector.on_deleted(business_id, self._collections[BUSINESSES])

    # ------------------------------------------------------------------
    # Push event handlers
    # ------------------------------------------------------------------

    def _on_business_change(self, event: ChangeEvent) -> None:
        if event.event_type == DELETE:
            self._remove_business(event.old["id"])
            return

        business = business_from_row(BusinessRow.model_validate(event.new))
        if self._upsert(BUSINESSES, business, insert=event.event_type == INSERT):
            self._selector.refresh(self.get_business_by_id(business.id))

    def _on_product_change(self, event: ChangeEvent) -> None:
        if event.event_type == DELETE:
            self._remove(PRODUCTS, event.old["id"])
            return

        product = product_from_row(ProductRow.model_validate(event.new))
        self._upsert(PRODUCTS, product, insert=event.event_type == INSERT)

    def _on_notification_change(self, event: ChangeEvent) -> None:
        if event.event_type == DELETE:
            self._remove(NOTIFICATIONS, event.old["id"])
            return

        notification = notification_from_row(NotificationRow.model_validate(event.new))
        added = self._upsert(NOTIFICATIONS, notification, insert=event.event_type == INSERT)
        if added and event.event_type == INSERT and not notification.read:
            logger.info(f"New notification: {notification.title} - {notification.message}")

    # ------------------------------------------------------------------
    # Business commands
    # ------------------------------------------------------------------

    async def create_business(self, data: BusinessCreate) -> Business:
        values = data.model_dump()
        values["id"] = generate_id()
        try:
            row = await self._database.insert_business(values)
        except RemoteStoreError as e:
            logger.error(f"Error creating business: {e}")
            raise RemoteWriteError("Error al crear el negocio", e) from e

        business = business_from_row(row)
        self._upsert(BUSINESSES, business, insert=True)
        logger.info(f"Business {business.id} created")
        return self.get_business_by_id(business.id) or business

    async def update_business(self, business_id: str, patch: BusinessUpdate) -> Business:
        values = business_patch_to_row(patch)
        if not values:
            cached = self.get_business_by_id(business_id)
            if cached is not None:
                return cached

        try:
            row = await self._database.update_business(business_id, values)
        except RemoteStoreError as e:
            logger.error(f"Error updating business {business_id}: {e}")
            raise RemoteWriteError("Error al actualizar el negocio", e) from e

        business = business_from_row(row)
        if self._upsert(BUSINESSES, business, insert=False):
            self._selector.refresh(business)
        return self.get_business_by_id(business_id) or business

    async def delete_business(self, business_id: str) -> None:
        """
        Delete a business and everything it owns.

        Order: product images, product rows, business logo, business row.
        The cache drops the business and its products in one step at the end.
        """
        business = self.get_business_by_id(business_id)
        owned = self.get_products_by_business(business_id)

        for product in owned:
            if product.image:
                await self._release_image(product.image)

        try:
            await self._database.delete_products_by_business(business_id)
        except RemoteStoreError as e:
            logger.error(f"Error deleting products of business {business_id}: {e}")
            raise RemoteWriteError("Error al eliminar el negocio", e) from e

        if business is not None and business.logo:
            await self._release_image(business.logo)

        try:
            await self._database.delete_business(business_id)
        except RemoteStoreError as e:
            logger.error(f"Error deleting business {business_id}: {e}")
            raise RemoteWriteError("Error al eliminar el negocio", e) from e

        self._remove_business(business_id, with_products=True)
        logger.info(f"Business {business_id} deleted with {len(owned)} products")

    # ------------------------------------------------------------------
    # Product commands
    # ------------------------------------------------------------------

    async def create_product(self, data: ProductCreate) -> Product:
        values = data.model_dump(by_alias=False)
        values["id"] = generate_id()
        try:
            row = await self._database.insert_product(values)
        except RemoteStoreError as e:
            logger.error(f"Error creating product: {e}")
            raise RemoteWriteError("Error al crear el producto", e) from e

        product = product_from_row(row)
        self._upsert(PRODUCTS, product, insert=True)
        logger.info(f"Product {product.id} created for business {product.business_id}")
        return self.get_product_by_id(product.id) or product

    async def update_product(self, product_id: str, patch: ProductUpdate) -> Product:
        values = product_patch_to_row(patch)
        if not values:
            cached = self.get_product_by_id(product_id)
            if cached is not None:
                return cached

        try:
            row = await self._database.update_product(product_id, values)
        except RemoteStoreError as e:
            logger.error(f"Error updating product {product_id}: {e}")
            raise RemoteWriteError("Error al actualizar el producto", e) from e

        product = product_from_row(row)
        self._upsert(PRODUCTS, product, insert=False)
        return self.get_product_by_id(product_id) or product

    async def delete_product(self, product_id: str) -> None:
        product = self.get_product_by_id(product_id)
        if product is not None and product.image:
            await self._release_image(product.image)

        try:
            await self._database.delete_product(product_id)
        except RemoteStoreError as e:
            logger.error(f"Error deleting product {product_id}: {e}")
            raise RemoteWriteError("Error al eliminar el producto", e) from e

        self._remove(PRODUCTS, product_id)

    async def _release_image(self, url: str) -> None:
        try:
            await self._images.delete(url)
        except Exception as e:
            logger.error(f"Error deleting image {url}: {e}")

    # ------------------------------------------------------------------
    # Server read flag (best effort, the local mirror is always applied)
    # ------------------------------------------------------------------

    async def mark_notification_read(self, notification_id: str) -> None:
        try:
            await self._database.mark_notification_read(notification_id)
        except RemoteStoreError as e:
            logger.error(f"Error marking notification as read: {e}")
        self._set_read(lambda n: n.id == notification_id)

    async def mark_all_notifications_read(self) -> None:
        try:
            await self._database.mark_all_notifications_read()
        except RemoteStoreError as e:
            logger.error(f"Error marking all notifications as read: {e}")
        self._set_read(lambda n: True)

    async def delete_notification(self, notification_id: str) -> None:
        try:
            await self._database.delete_notification(notification_id)
        except RemoteStoreError as e:
            logger.error(f"Error deleting notification: {e}")
        self._remove(NOTIFICATIONS, notification_id)

    async def clear_notifications(self) -> None:
        try:
            await self._database.delete_all_notifications()
        except RemoteStoreError as e:
            logger.error(f"Error clearing all notifications: {e}")
        for notification in self._collections[NOTIFICATIONS]:
            self._deleted[NOTIFICATIONS].add(notification.id)
        self._collections[NOTIFICATIONS] = []

    def _set_read(self, predicate) -> None:
        self._collections[NOTIFICATIONS] = [
            n.model_copy(update={"read": True}) if predicate(n) and not n.read else n
            for n in self._collections[NOTIFICATIONS]
        ]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_business_by_id(self, business_id: str) -> Optional[Business]:
        return next((b for b in self._collections[BUSINESSES] if b.id == business_id), None)

    def get_products_by_business(self, business_id: str) -> List[Product]:
        return [p for p in self._collections[PRODUCTS] if p.business_id == business_id]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._collections[PRODUCTS] if p.id == product_id), None)

    def get_total_products(self) -> int:
        return len(self._collections[PRODUCTS])

    def get_available_products(self) -> int:
        return sum(1 for p in self._collections[PRODUCTS] if p.status == "available")

    def get_sold_products(self) -> List[Product]:
        return [p for p in self._collections[PRODUCTS] if p.status == "sold"]

    def get_recent_products(self, limit: int = 5) -> List[Product]:
        """Most recently created products; equal dates keep their cache order."""
        if limit <= 0:
            return []
        # sorted() is stable, reverse=True included
        return sorted(self._collections[PRODUCTS], key=lambda p: p.created_at, reverse=True)[:limit]


def _is_older(incoming, existing) -> bool:
    incoming_ts = getattr(incoming, "updated_at", None)
    existing_ts = getattr(existing, "updated_at", None)
    if incoming_ts is None or existing_ts is None:
        return False
    return incoming_ts < existing_ts
