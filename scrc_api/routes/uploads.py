"""
Generic single file upload used by the admin forms (member photos, news images...).
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from typing import Optional
import logging

from scrc_api.dependencies import get_blob_store, require_admin
from scrc_api.exceptions import BackendFailure
from scrc_api.schemas import UploadResponse
from scrc_api.services.blob_store import BlobStore
from scrc_api.utils.naming import build_object_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    image: Optional[UploadFile] = File(None),
    blobs: BlobStore = Depends(get_blob_store),
    authenticated: bool = Depends(require_admin)
):
    """
    Store one file (multipart field "image") and return its public URL.
    """
    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    key = build_object_key("uploads", image.filename)
    try:
        data = await image.read()
        url = await blobs.put(key, data, image.content_type or "application/octet-stream")
    except BackendFailure as e:
        logger.error(f"Error uploading {image.filename}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed")

    logger.info(f"Uploaded {image.filename} as {key}")
    return UploadResponse(url=url)
