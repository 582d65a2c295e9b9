"""
Repository layer for Business operations.
Handles all database queries and writes for the businesses table.
"""

from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session

from app.core.exceptions import RemoteStoreError
from app.core.ids import generate_id
from app.models.business import Business
from app.models.notification import Notification
from app.services.notification_repository import NotificationRepository


class BusinessRepository:
    """Repository for Business operations"""

    @staticmethod
    def get_all(db: Session) -> List[Business]:
        """Get all businesses, newest first"""
        return db.query(Business)\
            .order_by(Business.created_at.desc(), Business.id.desc())\
            .all()

    @staticmethod
    def get_by_id(db: Session, business_id: str) -> Optional[Business]:
        """Get business by ID"""
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def create(db: Session, values: Dict[str, Any]) -> Tuple[Business, Notification]:
        """Create a new business together with its business_added notification"""
        values = dict(values)
        values.setdefault("id", generate_id())

        existing = BusinessRepository.get_by_id(db, values["id"])
        if existing:
            raise RemoteStoreError(f"Business with ID {values['id']} already exists")

        db_business = Business(**values)
        db.add(db_business)
        db.flush()

        notification = NotificationRepository.for_business_added(db, db_business)
        db.commit()
        return db_business, notification

    @staticmethod
    def update(db: Session, business_id: str, values: Dict[str, Any]) -> Optional[Business]:
        """Update business"""
        db_business = BusinessRepository.get_by_id(db, business_id)
        if not db_business:
            return None

        for field, value in values.items():
            if field in ("id", "created_at"):
                continue
            setattr(db_business, field, value)

        db.commit()
        return db_business

    @staticmethod
    def delete(db: Session, business_id: str) -> Optional[Business]:
        """Delete business (hard delete). Products must be removed first."""
        db_business = BusinessRepository.get_by_id(db, business_id)
        if not db_business:
            return None

        db.delete(db_business)
        db.commit()
        return db_business
