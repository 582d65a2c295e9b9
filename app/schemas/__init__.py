"""
Schemas for the application.

This module exports all Pydantic models and schemas used for request/response validation.
"""

from app.schemas.auth import (
    UserOut,
    LoginRequest,
    LoginResponse,
    SessionResponse,
)

from app.schemas.business import (
    BusinessRow,
    Business,
    BusinessCreate,
    BusinessUpdate,
    ActiveBusinessSelect,
    ActiveBusinessResponse,
)

from app.schemas.product import (
    ProductStatus,
    # Row / entity
    ProductRow,
    Product,
    # Requests
    ProductCreate,
    ProductUpdate,
    MarketplaceToggle,
    # Responses
    ProductWithBusiness,
    ProductListResponse,
    CategoryResponse,
    SuccessResponse,
    ImageUploadResponse,
)

from app.schemas.notification import (
    NotificationRow,
    Notification,
    FeedItem,
    NotificationFeedResponse,
)

from app.schemas.dashboard import DashboardResponse

__all__ = [
    "UserOut",
    "LoginRequest",
    "LoginResponse",
    "SessionResponse",
    "BusinessRow",
    "Business",
    "BusinessCreate",
    "BusinessUpdate",
    "ActiveBusinessSelect",
    "ActiveBusinessResponse",
    "ProductStatus",
    "ProductRow",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "MarketplaceToggle",
    "ProductWithBusiness",
    "ProductListResponse",
    "CategoryResponse",
    "SuccessResponse",
    "ImageUploadResponse",
    "NotificationRow",
    "Notification",
    "FeedItem",
    "NotificationFeedResponse",
    "DashboardResponse",
]
