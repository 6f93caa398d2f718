"""
FastAPI dependencies resolving the application context of the current request.
"""
from typing import AsyncIterator, Optional
import logging

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from scrc_api.context import AppContext
from scrc_api.services.blob_store import BlobStore
from scrc_api.utils.auth import tokens_match

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for database sessions.
    Handlers commit explicitly; anything left open is rolled back.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_context(request).session_factory() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise


def get_blob_store(request: Request) -> BlobStore:
    return get_context(request).blob_store


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(None, alias="x-admin-token", description="Admin token"),
) -> bool:
    """
    FastAPI dependency gating mutating routes.

    Raises:
        HTTPException: 401 if the x-admin-token header is missing or wrong
    """
    expected = get_context(request).settings.ADMIN_TOKEN
    if not x_admin_token or not tokens_match(x_admin_token, expected):
        logger.warning(f"Rejected admin request to {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return True
