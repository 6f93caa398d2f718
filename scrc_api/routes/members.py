"""
Member routes.
Listing is public; create, update and delete require the admin token.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from scrc_api.dependencies import get_db, require_admin
from scrc_api.exceptions import BackendFailure, RecordNotFound
from scrc_api.schemas import MemberCreate, MemberResponse, MemberUpdate
from scrc_api.services import resource_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/members/{member_type}", response_model=List[MemberResponse])
async def list_members(member_type: str, db: AsyncSession = Depends(get_db)):
    """
    Get members of one type, ordered by rank then name.
    Returns an empty list if the database query fails.
    """
    try:
        members = await resource_store.members.list(db, type=member_type)
    except Exception as e:
        logger.error(f"Error fetching members of type {member_type}: {str(e)}", exc_info=True)
        return []

    return [MemberResponse.model_validate(m) for m in members]


@router.post("/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    payload: MemberCreate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    values = payload.model_dump(exclude_none=True)
    values["details"] = payload.details.model_dump(exclude_none=True)
    try:
        member = await resource_store.members.create(db, values)
    except BackendFailure as e:
        logger.error(f"Error creating member: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to create member")

    return MemberResponse.model_validate(member)


@router.put("/members/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        member = await resource_store.members.update(db, member_id, payload.model_dump(exclude_unset=True))
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error updating member {member_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to update member")

    return MemberResponse.model_validate(member)


@router.delete("/members/{member_id}", response_model=MemberResponse)
async def delete_member(
    member_id: int,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        member = await resource_store.members.delete(db, member_id)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except BackendFailure as e:
        logger.error(f"Error deleting member {member_id}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to delete member")

    return MemberResponse.model_validate(member)
