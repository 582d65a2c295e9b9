"""
Pydantic schemas for Business.

BusinessRow mirrors the table columns; Business is the app entity handed to
routers and serialized as camelCase JSON.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BusinessRow(BaseModel):
    """Row of the businesses table."""
    id: str
    name: str
    logo: str = ""
    description: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Business(BaseModel):
    """Business entity as seen by the application."""
    id: str
    name: str
    logo: str = ""
    description: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BusinessCreate(BaseModel):
    """Schema for creating a new business."""
    name: str = Field(..., min_length=1, max_length=255, description="Business name")
    logo: str = Field("", description="Public URL of the logo image")
    description: str = Field("", description="Short description")


class BusinessUpdate(BaseModel):
    """Schema for updating a business (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    logo: Optional[str] = None
    description: Optional[str] = None


class ActiveBusinessSelect(BaseModel):
    """Schema for choosing the active business."""
    business_id: str = Field(..., alias="businessId")

    model_config = ConfigDict(populate_by_name=True)


class ActiveBusinessResponse(BaseModel):
    """Currently active business plus the acknowledgment of the last selection."""
    business: Optional[Business] = None
    message: Optional[str] = None
