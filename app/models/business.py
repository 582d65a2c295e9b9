"""
Business model for database operations.
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.ids import utcnow


class Business(Base):
    """
    Business table model.

    Table: businesses
    A business owns a list of products.
    """
    __tablename__ = "businesses"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    logo = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Product rows are deleted explicitly before the business row
    products = relationship("Product", back_populates="business", passive_deletes=True)

    def __repr__(self):
        return f"<Business(id='{self.id}', name='{self.name}')>"
