"""
Rate limiting utilities for API endpoints.
Uses slowapi to slow down brute force attempts on the login endpoint.

Each application builds its own Limiter (stored on app.state.limiter), so the
counters and the enabled switch of one app never leak into another.
"""
import logging

from fastapi import HTTPException, Request, status
from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


RATE_LIMITS = {
    "login": "5/minute",  # Allow only 5 login attempts per minute per IP
}


def build_limiter(enabled: bool = True) -> Limiter:
    return Limiter(
        key_func=get_client_identifier,
        storage_uri="memory://",
        enabled=enabled,
    )


def rate_limit(name: str):
    """
    FastAPI dependency applying RATE_LIMITS[name] with the limiter of the current app.

    Raises:
        HTTPException: 429 once the client has used up the limit
    """
    item = parse(RATE_LIMITS[name])

    def check(request: Request) -> None:
        limiter: Limiter = request.app.state.limiter
        if not limiter.enabled:
            return
        client = get_client_identifier(request)
        if not limiter.limiter.hit(item, name, client):
            logger.warning(f"Rate limit {RATE_LIMITS[name]} exceeded for {name} by {client}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded: {RATE_LIMITS[name]}",
            )

    return check
