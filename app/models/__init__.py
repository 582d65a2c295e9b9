"""
Database models for the application.
"""

from app.core.database import Base
from app.models.business import Business
from app.models.product import Product, PRODUCT_STATUSES
from app.models.notification import Notification, NOTIFICATION_TYPES
from app.models.user import User

__all__ = [
    "Base",
    "Business",
    "Product",
    "PRODUCT_STATUSES",
    "Notification",
    "NOTIFICATION_TYPES",
    "User",
]
