"""
Product model for database operations.
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime, Float, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.ids import utcnow


PRODUCT_STATUSES = ("available", "sold", "reserved")


class Product(Base):
    """Product model - an item a business lists for sale"""
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, index=True)
    business_id = Column(String(32), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="available", index=True)
    description = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=False, default="")
    posted_to_marketplace = Column(Boolean, nullable=True, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    business = relationship("Business", back_populates="products")

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint(
            "status IN ('available', 'sold', 'reserved')",
            name="ck_products_status",
        ),
    )

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', status='{self.status}')>"
