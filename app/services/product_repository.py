"""
Repository layer for Product operations.
Handles all database queries and writes for the products table.
"""

from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session

from app.core.exceptions import RemoteStoreError
from app.core.ids import generate_id
from app.models.business import Business
from app.models.notification import Notification
from app.models.product import Product
from app.services.notification_repository import NotificationRepository


class ProductRepository:
    """Repository for Product operations"""

    @staticmethod
    def get_all(db: Session) -> List[Product]:
        """Get all products, newest first"""
        return db.query(Product)\
            .order_by(Product.created_at.desc(), Product.id.desc())\
            .all()

    @staticmethod
    def get_by_id(db: Session, product_id: str) -> Optional[Product]:
        """Get product by ID"""
        return db.query(Product).filter(Product.id == product_id).first()

    @staticmethod
    def get_by_business(db: Session, business_id: str) -> List[Product]:
        return db.query(Product).filter(Product.business_id == business_id).all()

    @staticmethod
    def create(db: Session, values: Dict[str, Any]) -> Tuple[Product, Notification]:
        """Create a new product together with its product_added notification"""
        values = dict(values)
        values.setdefault("id", generate_id())

        # Validate business exists
        business = db.query(Business).filter(Business.id == values.get("business_id")).first()
        if not business:
            raise RemoteStoreError(f"Business with ID {values.get('business_id')} not found")

        db_product = Product(**values)
        db.add(db_product)
        db.flush()

        notification = NotificationRepository.for_product_added(db, db_product)
        db.commit()
        return db_product, notification

    @staticmethod
    def update(
        db: Session,
        product_id: str,
        values: Dict[str, Any]
    ) -> Optional[Tuple[Product, Notification]]:
        """Update product and stage the matching notification"""
        db_product = ProductRepository.get_by_id(db, product_id)
        if not db_product:
            return None

        if "business_id" in values and values["business_id"] != db_product.business_id:
            business = db.query(Business).filter(Business.id == values["business_id"]).first()
            if not business:
                raise RemoteStoreError(f"Business with ID {values['business_id']} not found")

        previous_status = db_product.status
        for field, value in values.items():
            if field in ("id", "created_at"):
                continue
            setattr(db_product, field, value)
        db.flush()

        notification = NotificationRepository.for_product_updated(db, db_product, previous_status)
        db.commit()
        return db_product, notification

    @staticmethod
    def delete(db: Session, product_id: str) -> Optional[Product]:
        """Delete product (hard delete)"""
        db_product = ProductRepository.get_by_id(db, product_id)
        if not db_product:
            return None

        db.delete(db_product)
        db.commit()
        return db_product

    @staticmethod
    def delete_by_business(db: Session, business_id: str) -> List[Product]:
        """Delete every product owned by a business, returning the deleted rows"""
        products = ProductRepository.get_by_business(db, business_id)
        for product in products:
            db.delete(product)
        db.commit()
        return products
