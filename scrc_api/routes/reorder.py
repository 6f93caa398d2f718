"""
Generic rank update for every orderable collection.
Registered before the per-resource routers so /{resource}/reorder wins over /{resource}/{id}.
"""
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_context, require_admin
from scrc_api.exceptions import BackendFailure
from scrc_api.schemas import OkResponse, ReorderRequest
from scrc_api.services.resource_store import REORDERABLE, apply_reorder

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/{resource}/reorder", response_model=OkResponse)
async def reorder_resource(
    resource: str,
    request: ReorderRequest,
    context: AppContext = Depends(get_context),
    authenticated: bool = Depends(require_admin)
):
    """
    Update the rank of several records of one collection.

    Body: {"updates": [{"id": 3, "rank": 0}, ...]}. Entries without an id or
    with a non-numeric rank are ignored. Updates are applied independently;
    the request only fails when every valid entry failed.
    """
    model = REORDERABLE.get(resource)
    if model is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid resource")

    try:
        applied, failed = await apply_reorder(context.session_factory, model, request.updates)
    except BackendFailure as e:
        logger.error(f"Error reordering {resource}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reorder")

    if failed:
        logger.warning(f"Partial reorder of {resource}: {applied} applied, {failed} failed")
    return OkResponse()
