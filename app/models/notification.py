"""
Notification model for database operations.
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime

from app.core.database import Base
from app.core.ids import utcnow


NOTIFICATION_TYPES = ("product_added", "product_updated", "product_sold", "business_added")


class Notification(Base):
    """
    Notification table model.

    Table: notifications
    Written by the database layer alongside business/product writes.
    Only the read flag changes after insert.
    """
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, index=True)
    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(255), nullable=True)
    # No foreign keys: notifications outlive the rows they talk about
    business_id = Column(String(32), nullable=True, index=True)
    product_id = Column(String(32), nullable=True, index=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id='{self.id}', type='{self.type}', read={self.read})>"
