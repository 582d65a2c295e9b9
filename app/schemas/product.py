"""
Pydantic schemas for Product.
Database row, app entity, and request/response models for API endpoints.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ProductStatus = Literal["available", "sold", "reserved"]


# ============================================================================
# Row / entity
# ============================================================================

class ProductRow(BaseModel):
    """Row of the products table"""
    id: str
    business_id: str
    name: str
    price: float
    category: str
    status: ProductStatus = "available"
    description: str = ""
    image: str = ""
    posted_to_marketplace: Optional[bool] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """Product entity as seen by the application"""
    id: str
    business_id: str
    name: str
    price: float
    category: str
    status: ProductStatus = "available"
    description: str = ""
    image: str = ""
    posted_to_marketplace: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ============================================================================
# Requests
# ============================================================================

class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    business_id: str = Field(..., description="Owning business ID")
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., gt=0, description="Price, must be positive")
    category: str = Field(..., min_length=1, max_length=100)
    status: ProductStatus = "available"
    description: str = ""
    image: str = ""
    posted_to_marketplace: bool = False

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductUpdate(BaseModel):
    """Schema for updating a product (all fields optional)"""
    business_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[ProductStatus] = None
    description: Optional[str] = None
    image: Optional[str] = None
    posted_to_marketplace: Optional[bool] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MarketplaceToggle(BaseModel):
    """Schema for flagging a product as posted (or not) to the marketplace"""
    posted: bool = True


# ============================================================================
# Responses
# ============================================================================

class ProductWithBusiness(Product):
    """Product plus the owning business name (None for orphaned products)"""
    business_name: Optional[str] = None


class ProductListResponse(BaseModel):
    """Filtered, paginated product list"""
    items: List[ProductWithBusiness]
    page: int
    per_page: int
    total: int
    total_pages: int
    total_unfiltered: int
    page_numbers: List[Union[int, str]] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryResponse(BaseModel):
    """Available product categories"""
    categories: List[str]
    count: int


class SuccessResponse(BaseModel):
    """Generic success response"""
    success: bool = True
    message: str


class ImageUploadResponse(BaseModel):
    """Public URL of an uploaded image"""
    url: str
