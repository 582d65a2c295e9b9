"""
Async gateway to the database.

Each call opens its own session, runs the repository work in a worker thread,
and after a successful commit publishes one change event per affected row on
the ChangeFeed. Callers only ever see row schemas, never ORM objects.
"""

import logging
from typing import Any, Callable, Dict, List, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import RemoteStoreError
from app.core.realtime import ChangeEvent, ChangeFeed, DELETE, INSERT, UPDATE
from app.schemas.business import BusinessRow
from app.schemas.notification import NotificationRow
from app.schemas.product import ProductRow
from app.services.business_repository import BusinessRepository
from app.services.notification_repository import NotificationRepository
from app.services.product_repository import ProductRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteDatabase:
    """Row-level access to businesses, products and notifications."""

    def __init__(self, session_factory: sessionmaker, feed: ChangeFeed):
        self._session_factory = session_factory
        self._feed = feed

    async def _run(self, work: Callable[[Session], T]) -> T:
        def call() -> T:
            with self._session_factory() as db:
                try:
                    return work(db)
                except SQLAlchemyError as e:
                    db.rollback()
                    raise RemoteStoreError(str(e)) from e
                except RemoteStoreError:
                    db.rollback()
                    raise

        return await run_in_threadpool(call)

    def _publish(self, table: str, event_type: str, new: Dict[str, Any] = None, old: Dict[str, Any] = None):
        logger.debug(f"Publishing {event_type} on '{table}'")
        self._feed.publish(ChangeEvent(table=table, event_type=event_type, new=new or {}, old=old or {}))

    # ------------------------------------------------------------------
    # Bulk reads
    # ------------------------------------------------------------------

    async def fetch_businesses(self) -> List[BusinessRow]:
        return await self._run(
            lambda db: [BusinessRow.model_validate(b) for b in BusinessRepository.get_all(db)]
        )

    async def fetch_products(self) -> List[ProductRow]:
        return await self._run(
            lambda db: [ProductRow.model_validate(p) for p in ProductRepository.get_all(db)]
        )

    async def fetch_notifications(self, limit: int = 100) -> List[NotificationRow]:
        return await self._run(
            lambda db: [NotificationRow.model_validate(n) for n in NotificationRepository.get_recent(db, limit)]
        )

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    async def insert_business(self, values: Dict[str, Any]) -> BusinessRow:
        def work(db: Session):
            business, notification = BusinessRepository.create(db, values)
            return BusinessRow.model_validate(business), NotificationRow.model_validate(notification)

        row, notification = await self._run(work)
        self._publish("businesses", INSERT, new=row.model_dump())
        self._publish("notifications", INSERT, new=notification.model_dump())
        return row

    async def update_business(self, business_id: str, values: Dict[str, Any]) -> BusinessRow:
        def work(db: Session):
            business = BusinessRepository.update(db, business_id, values)
            if business is None:
                raise RemoteStoreError(f"Business with ID {business_id} not found")
            return BusinessRow.model_validate(business)

        row = await self._run(work)
        self._publish("businesses", UPDATE, new=row.model_dump(), old={"id": business_id})
        return row

    async def delete_business(self, business_id: str) -> None:
        def work(db: Session):
            business = BusinessRepository.delete(db, business_id)
            if business is None:
                raise RemoteStoreError(f"Business with ID {business_id} not found")

        await self._run(work)
        self._publish("businesses", DELETE, old={"id": business_id})

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def insert_product(self, values: Dict[str, Any]) -> ProductRow:
        def work(db: Session):
            product, notification = ProductRepository.create(db, values)
            return ProductRow.model_validate(product), NotificationRow.model_validate(notification)

        row, notification = await self._run(work)
        self._publish("products", INSERT, new=row.model_dump())
        self._publish("notifications", INSERT, new=notification.model_dump())
        return row

    async def update_product(self, product_id: str, values: Dict[str, Any]) -> ProductRow:
        def work(db: Session):
            result = ProductRepository.update(db, product_id, values)
            if result is None:
                raise RemoteStoreError(f"Product with ID {product_id} not found")
            product, notification = result
            return ProductRow.model_validate(product), NotificationRow.model_validate(notification)

        row, notification = await self._run(work)
        self._publish("products", UPDATE, new=row.model_dump(), old={"id": product_id})
        self._publish("notifications", INSERT, new=notification.model_dump())
        return row

    async def delete_product(self, product_id: str) -> None:
        def work(db: Session):
            product = ProductRepository.delete(db, product_id)
            if product is None:
                raise RemoteStoreError(f"Product with ID {product_id} not found")

        await self._run(work)
        self._publish("products", DELETE, old={"id": product_id})

    async def delete_products_by_business(self, business_id: str) -> List[str]:
        def work(db: Session):
            return [p.id for p in ProductRepository.delete_by_business(db, business_id)]

        deleted_ids = await self._run(work)
        for product_id in deleted_ids:
            self._publish("products", DELETE, old={"id": product_id, "business_id": business_id})
        return deleted_ids

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def mark_notification_read(self, notification_id: str) -> None:
        def work(db: Session):
            notification = NotificationRepository.mark_read(db, notification_id)
            if notification is None:
                raise RemoteStoreError(f"Notification with ID {notification_id} not found")
            return NotificationRow.model_validate(notification)

        row = await self._run(work)
        self._publish("notifications", UPDATE, new=row.model_dump(), old={"id": notification_id})

    async def mark_all_notifications_read(self) -> None:
        def work(db: Session):
            return [NotificationRow.model_validate(n) for n in NotificationRepository.mark_all_read(db)]

        rows = await self._run(work)
        for row in rows:
            self._publish("notifications", UPDATE, new=row.model_dump(), old={"id": row.id})

    async def delete_notification(self, notification_id: str) -> None:
        def work(db: Session):
            notification = NotificationRepository.delete(db, notification_id)
            if notification is None:
                raise RemoteStoreError(f"Notification with ID {notification_id} not found")

        await self._run(work)
        self._publish("notifications", DELETE, old={"id": notification_id})

    async def delete_all_notifications(self) -> None:
        def work(db: Session):
            return [n.id for n in NotificationRepository.delete_all(db)]

        deleted_ids = await self._run(work)
        for notification_id in deleted_ids:
            self._publish("notifications", DELETE, old={"id": notification_id})
