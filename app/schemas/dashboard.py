"""
Pydantic schemas for the dashboard summary.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.business import Business
from app.schemas.product import Product


class DashboardResponse(BaseModel):
    """Overview counters plus the latest products"""
    total_businesses: int
    total_products: int
    available_products: int
    recent_products: List[Product]
    active_business: Optional[Business] = None
    live_updates: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
