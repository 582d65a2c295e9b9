"""
Business API endpoints.

Reads come from the Entity Store cache; writes go through its commands.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.routers.deps import get_store
from app.schemas.business import (
    ActiveBusinessResponse,
    ActiveBusinessSelect,
    Business,
    BusinessCreate,
    BusinessUpdate,
)
from app.services.entity_store import EntityStore

router = APIRouter(prefix="/businesses", tags=["Businesses"])


def _get_or_404(store: EntityStore, business_id: str) -> Business:
    business = store.get_business_by_id(business_id)
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Business with ID {business_id} not found"
        )
    return business


@router.get("/", response_model=List[Business])
async def get_all_businesses(store: EntityStore = Depends(get_store)):
    """All businesses, newest first."""
    return store.businesses


@router.post("/", response_model=Business, status_code=status.HTTP_201_CREATED)
async def create_business(business_data: BusinessCreate, store: EntityStore = Depends(get_store)):
    """
    Create a new business.

    Raises:
        RemoteWriteError (502): If the database rejects the write
    """
    return await store.create_business(business_data)


@router.get("/active", response_model=ActiveBusinessResponse)
async def get_active_business(store: EntityStore = Depends(get_store)):
    """The business currently in focus, if any."""
    return ActiveBusinessResponse(business=store.active_business)


@router.put("/active", response_model=ActiveBusinessResponse)
async def set_active_business(selection: ActiveBusinessSelect, store: EntityStore = Depends(get_store)):
    """
    Make a business the active one.

    Raises:
        HTTPException 404: If the business is not loaded
    """
    _get_or_404(store, selection.business_id)
    message = store.set_active_business(selection.business_id)
    return ActiveBusinessResponse(business=store.active_business, message=message)


@router.get("/{business_id}", response_model=Business)
async def get_business_by_id(business_id: str, store: EntityStore = Depends(get_store)):
    """
    Get a specific business by ID.

    Raises:
        HTTPException 404: If business not found
    """
    return _get_or_404(store, business_id)


@router.put("/{business_id}", response_model=Business)
async def update_business(
    business_id: str,
    business_data: BusinessUpdate,
    store: EntityStore = Depends(get_store),
):
    """
    Update an existing business (only the fields that were sent).

    Raises:
        HTTPException 404: If business not found
        RemoteWriteError (502): If the database rejects the write
    """
    _get_or_404(store, business_id)
    return await store.update_business(business_id, business_data)


@router.delete("/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(business_id: str, store: EntityStore = Depends(get_store)):
    """
    Delete a business together with its products and images.

    Raises:
        HTTPException 404: If business not found
        RemoteWriteError (502): If the products or the business row could not be deleted
    """
    _get_or_404(store, business_id)
    await store.delete_business(business_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
