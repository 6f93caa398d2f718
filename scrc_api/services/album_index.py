"""
Memories album index.
Albums and image rows live in the database, image bytes in the blob store
under memories/{album}/.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scrc_api.exceptions import AlbumAlreadyExists, BackendFailure, RecordNotFound
from scrc_api.models import MemoryAlbum, MemoryImage
from scrc_api.services.blob_store import BlobStore
from scrc_api.utils.image_converter import optimize_upload
from scrc_api.utils.naming import build_object_key, sanitize_album_name

logger = logging.getLogger(__name__)

MEMORIES_ROOT = "memories"


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    data: bytes


def album_prefix(album_name: str) -> str:
    return f"{MEMORIES_ROOT}/{album_name}"


async def _find_album(db: AsyncSession, name: str) -> Optional[MemoryAlbum]:
    result = await db.execute(select(MemoryAlbum).where(MemoryAlbum.name == name))
    return result.scalar_one_or_none()


async def list_albums(db: AsyncSession) -> List[dict]:
    """
    Albums ordered by name with their image count and cover URL.
    The cover is the first image by rank then recency; empty albums have none.
    """
    albums = (await db.execute(select(MemoryAlbum).order_by(MemoryAlbum.name.asc()))).scalars().all()

    counts = dict(
        (await db.execute(
            select(MemoryImage.album_id, func.count(MemoryImage.id)).group_by(MemoryImage.album_id)
        )).all()
    )

    covers = {}
    images = await db.execute(
        select(MemoryImage.album_id, MemoryImage.url)
        .order_by(MemoryImage.rank.asc(), MemoryImage.created_at.desc(), MemoryImage.id.desc())
    )
    for album_id, url in images.all():
        covers.setdefault(album_id, url)

    return [
        {"name": album.name, "count": counts.get(album.id, 0), "cover": covers.get(album.id)}
        for album in albums
    ]


async def create_album(db: AsyncSession, raw_name: Optional[str]) -> MemoryAlbum:
    """
    Create an album from a user supplied name.

    Raises:
        InvalidAlbumName: name is empty once sanitized
        AlbumAlreadyExists: an album with the sanitized name exists
    """
    name = sanitize_album_name(raw_name)
    if await _find_album(db, name) is not None:
        raise AlbumAlreadyExists(f"Album {name} already exists")

    album = MemoryAlbum(name=name)
    db.add(album)
    try:
        await db.commit()
        await db.refresh(album)
    except IntegrityError as e:
        # Concurrent create of the same name
        await db.rollback()
        raise AlbumAlreadyExists(f"Album {name} already exists") from e
    except SQLAlchemyError as e:
        await db.rollback()
        raise BackendFailure(f"Failed to create album {name}") from e

    logger.info(f"Created album: {name}")
    return album


async def delete_album(db: AsyncSession, blobs: BlobStore, raw_name: Optional[str]) -> None:
    """
    Delete an album, its image rows and every blob stored for it.

    Raises:
        RecordNotFound: no album with that name
    """
    name = sanitize_album_name(raw_name)
    album = await _find_album(db, name)
    if album is None:
        raise RecordNotFound(f"Album {name} does not exist")

    keys = list(
        (await db.execute(select(MemoryImage.storage_key).where(MemoryImage.album_id == album.id))).scalars()
    )
    listed = [entry.path for entry in await blobs.list(album_prefix(name))]
    paths = sorted(set(keys) | set(listed))
    if paths:
        await blobs.remove(paths)
        logger.info(f"Removed {len(paths)} blob(s) for album {name}")

    try:
        await db.execute(delete(MemoryImage).where(MemoryImage.album_id == album.id))
        await db.execute(delete(MemoryAlbum).where(MemoryAlbum.id == album.id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise BackendFailure(f"Failed to delete album {name}") from e

    logger.info(f"Deleted album: {name}")


async def list_images(db: AsyncSession, raw_name: Optional[str]) -> List[MemoryImage]:
    """Images of an album by rank then recency; unknown albums yield []."""
    name = sanitize_album_name(raw_name)
    album = await _find_album(db, name)
    if album is None:
        return []
    result = await db.execute(
        select(MemoryImage)
        .where(MemoryImage.album_id == album.id)
        .order_by(MemoryImage.rank.asc(), MemoryImage.created_at.desc(), MemoryImage.id.desc())
    )
    return list(result.scalars().all())


async def _store_file(blobs: BlobStore, album_name: str, upload: UploadedFile, convert: bool) -> dict:
    data, filename, content_type = upload.data, upload.filename, upload.content_type
    if convert:
        data, filename, content_type = await optimize_upload(data, filename, content_type)
    key = build_object_key(MEMORIES_ROOT, filename, bucket=album_name)
    url = await blobs.put(key, data, content_type)
    return {"key": key, "url": url, "filename": upload.filename}


async def upload_images(
    db: AsyncSession,
    blobs: BlobStore,
    raw_name: Optional[str],
    files: List[UploadedFile],
    convert_to_webp: bool = True,
) -> List[str]:
    """
    Store a batch of images in an album.

    Non-image files and files whose upload fails are logged and left out of
    the result; they never abort the rest of the batch.

    Returns:
        URLs of the stored images, in upload order

    Raises:
        RecordNotFound: no album with that name
    """
    name = sanitize_album_name(raw_name)
    album = await _find_album(db, name)
    if album is None:
        raise RecordNotFound(f"Album {name} does not exist")

    accepted = []
    for upload in files:
        if not upload.content_type.startswith("image/"):
            logger.warning(f"Skipping non-image upload {upload.filename} ({upload.content_type})")
            continue
        accepted.append(upload)

    results = await asyncio.gather(
        *(_store_file(blobs, name, upload, convert_to_webp) for upload in accepted),
        return_exceptions=True,
    )

    stored = []
    for upload, result in zip(accepted, results):
        if isinstance(result, Exception):
            logger.error(f"Error uploading {upload.filename} to album {name}: {str(result)}")
            continue
        stored.append(result)

    for item in stored:
        db.add(MemoryImage(album_id=album.id, url=item["url"], storage_key=item["key"]))
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        # Rows are lost, so drop the orphaned blobs as well
        await blobs.remove([item["key"] for item in stored])
        raise BackendFailure(f"Failed to record uploads for album {name}") from e

    if len(stored) < len(files):
        logger.warning(f"Partial upload to album {name}: {len(stored)} of {len(files)} stored")
    logger.info(f"Uploaded {len(stored)} image(s) to album {name}")
    return [item["url"] for item in stored]


async def delete_image(db: AsyncSession, blobs: BlobStore, raw_name: Optional[str], filename: str) -> None:
    """
    Delete one image of an album by its stored file name.
    The file name must match the stored key exactly.

    Raises:
        RecordNotFound: no such album or no image with that key in it
    """
    name = sanitize_album_name(raw_name)
    album = await _find_album(db, name)
    if album is None:
        raise RecordNotFound(f"Album {name} does not exist")

    key = f"{album_prefix(name)}/{filename}"
    result = await db.execute(
        select(MemoryImage).where(MemoryImage.album_id == album.id, MemoryImage.storage_key == key)
    )
    image = result.scalar_one_or_none()
    if image is None:
        raise RecordNotFound(f"Image {filename} not found in album {name}")

    await blobs.remove([key])
    try:
        await db.delete(image)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise BackendFailure(f"Failed to delete image {filename}") from e

    logger.info(f"Deleted image {key}")
