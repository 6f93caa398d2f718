"""
Admin login.
Returns the shared admin token used in the x-admin-token header.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_context
from scrc_api.schemas import LoginRequest, TokenResponse
from scrc_api.utils.auth import check_admin_credentials
from scrc_api.utils.rate_limit import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: Optional[LoginRequest] = None,
    context: AppContext = Depends(get_context),
    rate_limited: None = Depends(rate_limit("login"))
):
    """
    Exchange the admin username and password for the admin token.

    Raises:
        HTTPException: 401 if the credentials do not match
        HTTPException: 429 after 5 attempts per minute from one client
    """
    credentials = credentials or LoginRequest()
    if not check_admin_credentials(context.settings, credentials.username, credentials.password):
        logger.warning(f"Failed admin login attempt for user '{credentials.username}'")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("Admin logged in")
    return TokenResponse(token=context.settings.ADMIN_TOKEN)
