"""
News routes.
Creating a news item notifies registered push subscribers in the background.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_context, get_db, require_admin
from scrc_api.exceptions import BackendFailure, RecordNotFound
from scrc_api.models import utcnow
from scrc_api.schemas import NewsCreate, NewsResponse, NewsUpdate
from scrc_api.services import resource_store
from scrc_api.services.notifier import notify_subscribers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/news", response_model=List[NewsResponse])
async def list_news(
    active: Optional[str] = None,
    popup: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Get news ordered by rank, newest first within a rank.
    `active=true` / `popup=true` restrict the list; other values are ignored.
    """
    try:
        items = await resource_store.news.list(
            db,
            active=True if active == "true" else None,
            popup=True if popup == "true" else None,
        )
    except Exception as e:
        logger.error(f"Error fetching news: {str(e)}", exc_info=True)
        return []

    return [NewsResponse.model_validate(item) for item in items]


@router.post("/news", response_model=NewsResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    payload: NewsCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
    authenticated: bool = Depends(require_admin)
):
    values = payload.model_dump()
    values["published_at"] = utcnow()
    try:
        item = await resource_store.news.create(db, values)
    except BackendFailure as e:
        logger.error(f"Error creating news: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to create news")

    background_tasks.add_task(
        notify_subscribers, context, item.title, item.text, {"type": "news", "id": item.id}
    )
    return NewsResponse.model_validate(item)


@router.put("/news/{news_id}", response_model=NewsResponse)
async def update_news(
    news_id: int,
    payload: NewsUpdate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        item = await resource_store.news.update(db, news_id, payload.model_dump(exclude_unset=True))
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error updating news {news_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to update news")

    return NewsResponse.model_validate(item)


@router.delete("/news/{news_id}", response_model=NewsResponse)
async def delete_news(
    news_id: int,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        item = await resource_store.news.delete(db, news_id)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error deleting news {news_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to delete news")

    return NewsResponse.model_validate(item)
