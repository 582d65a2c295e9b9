"""
Product API endpoints.

Listings are filtered and paginated from the Entity Store cache; writes go
through its commands.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.routers.deps import get_store
from app.schemas.product import (
    CategoryResponse,
    MarketplaceToggle,
    Product,
    ProductCreate,
    ProductListResponse,
    ProductUpdate,
)
from app.services.catalog import CATEGORIES, DEFAULT_PER_PAGE, filter_products, paginate, with_business_names
from app.services.entity_store import EntityStore

router = APIRouter(prefix="/products", tags=["Products"])


def _get_or_404(store: EntityStore, product_id: str) -> Product:
    product = store.get_product_by_id(product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )
    return product


def _ensure_business(store: EntityStore, business_id: str) -> None:
    if not store.get_business_by_id(business_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business with ID {business_id} not found"
        )


def _list_response(store: EntityStore, scope, filtered, page: int, per_page: int) -> ProductListResponse:
    result = paginate(filtered, page, per_page)
    return ProductListResponse(
        items=with_business_names(result.items, store.businesses),
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        total_pages=result.total_pages,
        total_unfiltered=len(scope),
        page_numbers=result.page_numbers,
    )


@router.get("/", response_model=ProductListResponse)
async def get_products(
    business_id: Optional[str] = Query(None, description="Defaults to the active business"),
    search: Optional[str] = Query(None, description="Matches name or description"),
    category: Optional[str] = Query(None, description="Category name or 'all'"),
    status_filter: Optional[str] = Query(None, alias="status", description="available, sold, reserved or 'all'"),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=100),
    store: EntityStore = Depends(get_store),
):
    """
    Products of one business, filtered and paginated.

    Without ``business_id`` the active business is used; with no active
    business the list is empty.
    """
    if business_id is None:
        active = store.active_business
        business_id = active.id if active else None

    scope = store.get_products_by_business(business_id) if business_id else []
    filtered = filter_products(scope, search=search, category=category, status=status_filter)
    return _list_response(store, scope, filtered, page, per_page)


@router.get("/sold", response_model=ProductListResponse)
async def get_sold_products(
    search: Optional[str] = Query(None, description="Matches name or description"),
    category: Optional[str] = Query(None, description="Category name or 'all'"),
    business_id: Optional[str] = Query(None, description="Business ID or 'all'"),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=100),
    store: EntityStore = Depends(get_store),
):
    """Sold products across all businesses, filtered and paginated."""
    scope = store.get_sold_products()
    filtered = filter_products(scope, search=search, category=category, business_id=business_id)
    return _list_response(store, scope, filtered, page, per_page)


@router.get("/categories", response_model=CategoryResponse)
def get_categories():
    """Fixed list of product categories."""
    return CategoryResponse(categories=CATEGORIES, count=len(CATEGORIES))


@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(product_data: ProductCreate, store: EntityStore = Depends(get_store)):
    """
    Create a new product for a loaded business.

    Raises:
        HTTPException 404: If the business is not loaded
        RemoteWriteError (502): If the database rejects the write
    """
    _ensure_business(store, product_data.business_id)
    return await store.create_product(product_data)


@router.get("/{product_id}", response_model=Product)
async def get_product_by_id(product_id: str, store: EntityStore = Depends(get_store)):
    """
    Get a specific product by ID.

    Raises:
        HTTPException 404: If product not found
    """
    return _get_or_404(store, product_id)


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    store: EntityStore = Depends(get_store),
):
    """
    Update an existing product (only the fields that were sent).

    Raises:
        HTTPException 404: If the product, or the business it moves to, is not loaded
        RemoteWriteError (502): If the database rejects the write
    """
    _get_or_404(store, product_id)
    if product_data.business_id is not None:
        _ensure_business(store, product_data.business_id)
    return await store.update_product(product_id, product_data)


@router.post("/{product_id}/sold", response_model=Product)
async def mark_product_sold(product_id: str, store: EntityStore = Depends(get_store)):
    """Set the product status to sold."""
    _get_or_404(store, product_id)
    return await store.update_product(product_id, ProductUpdate(status="sold"))


@router.post("/{product_id}/marketplace", response_model=Product)
async def set_posted_to_marketplace(
    product_id: str,
    toggle: MarketplaceToggle,
    store: EntityStore = Depends(get_store),
):
    """Flag the product as posted (or not) to the marketplace."""
    _get_or_404(store, product_id)
    return await store.update_product(product_id, ProductUpdate(posted_to_marketplace=toggle.posted))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, store: EntityStore = Depends(get_store)):
    """
    Delete a product and release its image.

    Raises:
        HTTPException 404: If product not found
        RemoteWriteError (502): If the row could not be deleted
    """
    _get_or_404(store, product_id)
    await store.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
