"""
Notice board routes.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_context, get_db, require_admin
from scrc_api.exceptions import BackendFailure, RecordNotFound
from scrc_api.schemas import NoticeCreate, NoticeResponse, NoticeUpdate
from scrc_api.services import resource_store
from scrc_api.services.notifier import notify_subscribers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/notices", response_model=List[NoticeResponse])
async def list_notices(
    active: Optional[str] = None,
    popup: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    try:
        notices = await resource_store.notices.list(
            db,
            active=True if active == "true" else None,
            popup=True if popup == "true" else None,
        )
    except Exception as e:
        logger.error(f"Error fetching notices: {str(e)}", exc_info=True)
        return []

    return [NoticeResponse.model_validate(n) for n in notices]


@router.post("/notices", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
async def create_notice(
    payload: NoticeCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
    authenticated: bool = Depends(require_admin)
):
    try:
        notice = await resource_store.notices.create(db, payload.model_dump(exclude_none=True))
    except BackendFailure as e:
        logger.error(f"Error creating notice: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to create notice")

    background_tasks.add_task(
        notify_subscribers, context, notice.title, notice.text, {"type": "notice", "id": notice.id}
    )
    return NoticeResponse.model_validate(notice)


@router.put("/notices/{notice_id}", response_model=NoticeResponse)
async def update_notice(
    notice_id: int,
    payload: NoticeUpdate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        notice = await resource_store.notices.update(db, notice_id, payload.model_dump(exclude_unset=True))
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error updating notice {notice_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to update notice")

    return NoticeResponse.model_validate(notice)


@router.delete("/notices/{notice_id}", response_model=NoticeResponse)
async def delete_notice(
    notice_id: int,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        notice = await resource_store.notices.delete(db, notice_id)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error deleting notice {notice_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to delete notice")

    return NoticeResponse.model_validate(notice)
