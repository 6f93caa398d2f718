"""
Gallery routes for images and videos shown on the gallery page.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from scrc_api.dependencies import get_db, require_admin
from scrc_api.exceptions import BackendFailure, RecordNotFound
from scrc_api.schemas import GalleryItemCreate, GalleryItemResponse, GalleryItemUpdate
from scrc_api.services import resource_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/gallery", response_model=List[GalleryItemResponse])
async def list_gallery_items(
    item_type: Optional[str] = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db)
):
    """Get gallery items, optionally only images or only videos."""
    try:
        items = await resource_store.gallery.list(db, type=item_type or None)
    except Exception as e:
        logger.error(f"Error fetching gallery items: {str(e)}", exc_info=True)
        return []

    logger.info(f"Retrieved {len(items)} gallery items")
    return [GalleryItemResponse.model_validate(item) for item in items]


@router.post("/gallery", response_model=GalleryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_gallery_item(
    payload: GalleryItemCreate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        item = await resource_store.gallery.create(db, payload.model_dump(exclude_none=True))
    except BackendFailure as e:
        logger.error(f"Error creating gallery item: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to create gallery item")

    return GalleryItemResponse.model_validate(item)


@router.put("/gallery/{item_id}", response_model=GalleryItemResponse)
async def update_gallery_item(
    item_id: int,
    payload: GalleryItemUpdate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        item = await resource_store.gallery.update(db, item_id, payload.model_dump(exclude_unset=True))
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error updating gallery item {item_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to update gallery item")

    return GalleryItemResponse.model_validate(item)


@router.delete("/gallery/{item_id}", response_model=GalleryItemResponse)
async def delete_gallery_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        item = await resource_store.gallery.delete(db, item_id)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error deleting gallery item {item_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to delete gallery item")

    return GalleryItemResponse.model_validate(item)
