"""
Conversions between database rows and application entities.

Every function is pure and total: rows never leave the service layer, and
patches only carry the fields the caller actually set.
"""

from typing import Any, Dict

from app.core.ids import as_utc
from app.schemas.business import Business, BusinessRow, BusinessUpdate
from app.schemas.notification import Notification, NotificationRow
from app.schemas.product import Product, ProductRow, ProductUpdate


def business_from_row(row: BusinessRow) -> Business:
    return Business(
        id=row.id,
        name=row.name,
        logo=row.logo or "",
        description=row.description or "",
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


def business_to_row(business: Business) -> BusinessRow:
    return BusinessRow(
        id=business.id,
        name=business.name,
        logo=business.logo,
        description=business.description,
        created_at=business.created_at,
        updated_at=business.updated_at,
    )


def business_patch_to_row(patch: BusinessUpdate) -> Dict[str, Any]:
    return patch.model_dump(exclude_unset=True, exclude_none=True)


def product_from_row(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        business_id=row.business_id,
        name=row.name,
        price=row.price,
        category=row.category,
        status=row.status,
        description=row.description or "",
        image=row.image or "",
        posted_to_marketplace=bool(row.posted_to_marketplace),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


def product_to_row(product: Product) -> ProductRow:
    return ProductRow(
        id=product.id,
        business_id=product.business_id,
        name=product.name,
        price=product.price,
        category=product.category,
        status=product.status,
        description=product.description,
        image=product.image,
        posted_to_marketplace=product.posted_to_marketplace,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def product_patch_to_row(patch: ProductUpdate) -> Dict[str, Any]:
    # Field names of ProductUpdate already match the column names
    return patch.model_dump(exclude_unset=True, exclude_none=True, by_alias=False)


def notification_from_row(row: NotificationRow) -> Notification:
    return Notification(
        id=row.id,
        type=row.type,
        title=row.title,
        message=row.message,
        link=row.link or None,
        timestamp=as_utc(row.created_at),
        read=row.read,
    )
