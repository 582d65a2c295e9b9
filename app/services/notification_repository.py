"""
Repository layer for Notification operations.

Besides the read-flag and delete operations used by the dashboard, this module
builds the notification rows that accompany business and product writes.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.ids import generate_id
from app.models.business import Business
from app.models.notification import Notification
from app.models.product import Product


class NotificationRepository:
    """Repository for Notification operations"""

    @staticmethod
    def get_recent(db: Session, limit: int = 100) -> List[Notification]:
        """Latest notifications, newest first"""
        return db.query(Notification)\
            .order_by(Notification.created_at.desc(), Notification.id.desc())\
            .limit(limit).all()

    @staticmethod
    def get_by_id(db: Session, notification_id: str) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.id == notification_id).first()

    @staticmethod
    def for_business_added(db: Session, business: Business) -> Notification:
        """Stage a business_added notification in the current transaction"""
        notification = Notification(
            id=generate_id(),
            type="business_added",
            title="Nuevo negocio",
            message=f"Se creó el negocio {business.name}",
            link="/businesses",
            business_id=business.id,
        )
        db.add(notification)
        return notification

    @staticmethod
    def for_product_added(db: Session, product: Product) -> Notification:
        """Stage a product_added notification in the current transaction"""
        notification = Notification(
            id=generate_id(),
            type="product_added",
            title="Nuevo producto",
            message=f"{product.name} fue agregado al inventario",
            link=f"/products/{product.id}",
            business_id=product.business_id,
            product_id=product.id,
        )
        db.add(notification)
        return notification

    @staticmethod
    def for_product_updated(db: Session, product: Product, previous_status: str) -> Notification:
        """
        Stage the notification for a product update.

        A status change to sold is reported as product_sold, anything else as
        product_updated.
        """
        if product.status == "sold" and previous_status != "sold":
            notification_type = "product_sold"
            title = "Producto vendido"
            message = f"{product.name} fue marcado como vendido"
        else:
            notification_type = "product_updated"
            title = "Producto actualizado"
            message = f"{product.name} fue actualizado"

        notification = Notification(
            id=generate_id(),
            type=notification_type,
            title=title,
            message=message,
            link=f"/products/{product.id}",
            business_id=product.business_id,
            product_id=product.id,
        )
        db.add(notification)
        return notification

    @staticmethod
    def mark_read(db: Session, notification_id: str) -> Optional[Notification]:
        """Set the read flag of one notification"""
        notification = NotificationRepository.get_by_id(db, notification_id)
        if not notification:
            return None

        notification.read = True
        db.commit()
        return notification

    @staticmethod
    def mark_all_read(db: Session) -> List[Notification]:
        """Set the read flag of every unread notification"""
        unread = db.query(Notification).filter(Notification.read.is_(False)).all()
        for notification in unread:
            notification.read = True
        db.commit()
        return unread

    @staticmethod
    def delete(db: Session, notification_id: str) -> Optional[Notification]:
        notification = NotificationRepository.get_by_id(db, notification_id)
        if not notification:
            return None

        db.delete(notification)
        db.commit()
        return notification

    @staticmethod
    def delete_all(db: Session) -> List[Notification]:
        notifications = db.query(Notification).all()
        for notification in notifications:
            db.delete(notification)
        db.commit()
        return notifications
