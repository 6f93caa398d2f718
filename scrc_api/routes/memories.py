"""
Memories routes: photo albums and their images.
Album routes are declared before /memories/{album} so "albums" is never read as an album name.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from typing import List
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_blob_store, get_context, get_db, require_admin
from scrc_api.exceptions import AlbumAlreadyExists, BackendFailure, InvalidAlbumName, RecordNotFound
from scrc_api.schemas import (
    AlbumCreate,
    AlbumResponse,
    AlbumSummary,
    MemoryImageResponse,
    OkResponse,
    UploadedImagesResponse,
)
from scrc_api.services import album_index
from scrc_api.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/memories")


@router.get("/albums", response_model=List[AlbumSummary], response_model_exclude_none=True)
async def list_albums(db: AsyncSession = Depends(get_db)):
    """
    Get all albums with their image count and cover image URL.
    Returns an empty list if the query fails.
    """
    try:
        albums = await album_index.list_albums(db)
    except Exception as e:
        logger.error(f"Error listing albums: {str(e)}", exc_info=True)
        return []

    return [AlbumSummary(**album) for album in albums]


@router.post("/albums", response_model=AlbumResponse, status_code=status.HTTP_201_CREATED)
async def create_album(
    payload: AlbumCreate,
    db: AsyncSession = Depends(get_db),
    authenticated: bool = Depends(require_admin)
):
    try:
        album = await album_index.create_album(db, payload.name)
    except InvalidAlbumName:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid name")
    except AlbumAlreadyExists:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Album already exists")
    except BackendFailure as e:
        logger.error(f"Error creating album: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create album")

    return AlbumResponse(name=album.name)


@router.delete("/albums/{album}", response_model=OkResponse)
async def delete_album(
    album: str,
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    authenticated: bool = Depends(require_admin)
):
    """Delete an album together with all of its images and stored files."""
    try:
        await album_index.delete_album(db, blobs, album)
    except InvalidAlbumName:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid name")
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Album not found")
    except BackendFailure as e:
        logger.error(f"Error deleting album {album}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete album")

    return OkResponse()


@router.get("/{album}", response_model=List[MemoryImageResponse])
async def list_album_images(album: str, db: AsyncSession = Depends(get_db)):
    try:
        images = await album_index.list_images(db, album)
    except InvalidAlbumName:
        return []
    except Exception as e:
        logger.error(f"Error listing images of album {album}: {str(e)}", exc_info=True)
        return []

    return [MemoryImageResponse.model_validate(img) for img in images]


@router.post("/{album}/upload", response_model=UploadedImagesResponse, status_code=status.HTTP_201_CREATED)
async def upload_album_images(
    album: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
    authenticated: bool = Depends(require_admin)
):
    """
    Upload images to an album (multipart field "images").

    Files that fail to upload are logged and omitted from the response;
    the response lists the URLs that were stored.
    """
    form = await request.form()
    files = [f for f in form.getlist("images") if isinstance(f, UploadFile)]

    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files uploaded")

    max_files = context.settings.MAX_ALBUM_UPLOAD_FILES
    if len(files) > max_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files, at most {max_files} per upload"
        )

    uploads = []
    for i, file in enumerate(files):
        uploads.append(album_index.UploadedFile(
            filename=file.filename or f"file_{i}",
            content_type=file.content_type or "application/octet-stream",
            data=await file.read(),
        ))

    try:
        urls = await album_index.upload_images(
            db,
            context.blob_store,
            album,
            uploads,
            convert_to_webp=context.settings.CONVERT_UPLOADS_TO_WEBP,
        )
    except InvalidAlbumName:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid name")
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Album not found")
    except BackendFailure as e:
        logger.error(f"Error uploading to album {album}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed")

    return UploadedImagesResponse(uploaded=urls)


@router.delete("/{album}/{filename}", response_model=OkResponse)
async def delete_album_image(
    album: str,
    filename: str,
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    authenticated: bool = Depends(require_admin)
):
    try:
        await album_index.delete_image(db, blobs, album, filename)
    except InvalidAlbumName:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid name")
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    except BackendFailure as e:
        logger.error(f"Error deleting image {filename} of album {album}: {str(e.__cause__ or e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete image")

    return OkResponse()
