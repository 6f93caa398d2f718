"""
Blob storage for uploaded files.

Three interchangeable backends share the BlobStore protocol:
- LocalBlobStore: files under UPLOAD_DIR, served by the app at /uploads
- CloudinaryBlobStore: Cloudinary CDN storage
- InMemoryBlobStore: test double
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable
from urllib.parse import quote
import asyncio
import logging
import os
import shutil

import aiofiles
import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError, NotFound as CloudinaryNotFound

from scrc_api.exceptions import BackendFailure

logger = logging.getLogger(__name__)


@dataclass
class ObjectMeta:
    """
    Entry returned by BlobStore.list.
    `size` is None for directory/prefix entries, which carry no object metadata.
    """
    name: str
    path: str
    size: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return self.size is not None


@runtime_checkable
class BlobStore(Protocol):
    """Operations the API needs from blob storage."""

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        ...

    async def remove(self, paths: List[str]) -> None:
        ...

    async def list(self, prefix: str) -> List[ObjectMeta]:
        ...


def _clean_path(path: str) -> str:
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    if ".." in parts:
        raise ValueError(f"Invalid storage path: {path}")
    return "/".join(parts)


@dataclass
class InMemoryBlobStore:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    objects: Dict[str, Tuple[bytes, str]] = field(default_factory=dict)

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        key = _clean_path(path)
        self.objects[key] = (data, content_type)
        return f"{self.base_url}/{quote(key)}"

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            self.objects.pop(_clean_path(path), None)

    async def list(self, prefix: str) -> List[ObjectMeta]:
        root = _clean_path(prefix)
        root = f"{root}/" if root else ""
        entries: Dict[str, ObjectMeta] = {}
        for key, (data, _) in sorted(self.objects.items()):
            if not key.startswith(root):
                continue
            rest = key[len(root):]
            name, sep, _ = rest.partition("/")
            if sep:
                entries.setdefault(name, ObjectMeta(name=name, path=f"{root}{name}"))
            else:
                entries[name] = ObjectMeta(name=name, path=key, size=len(data))
        return list(entries.values())


class LocalBlobStore:
    """
    Stores files on local disk.
    URLs point at the /uploads static mount of this application.
    """

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        return self.root / _clean_path(path)

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {str(e)}")
            raise BackendFailure(f"Failed to store {path}") from e
        return f"{self.base_url}/uploads/{quote(_clean_path(path))}"

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                if target.is_dir():
                    await asyncio.to_thread(shutil.rmtree, target)
                else:
                    target.unlink()
            except FileNotFoundError:
                logger.debug(f"Blob already absent: {path}")
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {str(e)}")

    async def list(self, prefix: str) -> List[ObjectMeta]:
        directory = self._resolve(prefix)
        if not directory.is_dir():
            return []
        entries = []
        for entry in sorted(os.scandir(directory), key=lambda e: e.name):
            path = f"{_clean_path(prefix)}/{entry.name}".lstrip("/")
            if entry.is_dir():
                entries.append(ObjectMeta(name=entry.name, path=path))
            else:
                entries.append(ObjectMeta(name=entry.name, path=path, size=entry.stat().st_size))
        return entries


class CloudinaryBlobStore:
    """
    Stores files on Cloudinary.
    The Cloudinary public id is the storage key without its extension.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True  # Always use HTTPS for secure URLs
        )

    @staticmethod
    def _public_id(path: str) -> str:
        return os.path.splitext(_clean_path(path))[0]

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes to Cloudinary.

        Returns:
            str: Secure HTTPS URL for the uploaded file

        Raises:
            BackendFailure: If Cloudinary rejects the upload
        """
        resource_type = "image" if content_type.startswith("image/") else "auto"
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                data,
                public_id=self._public_id(path),
                resource_type=resource_type,
                overwrite=False,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload failed for {path}: {str(e)}")
            raise BackendFailure(f"Failed to store {path}") from e

        logger.info(f"Successfully uploaded to Cloudinary: {result['public_id']}")
        return result["secure_url"]

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            public_id = self._public_id(path)
            try:
                # Invalidate CDN cache so the asset disappears from edge caches too
                result = await asyncio.to_thread(
                    cloudinary.uploader.destroy,
                    public_id,
                    invalidate=True,
                    resource_type="image",
                )
            except CloudinaryError as e:
                logger.warning(f"Cloudinary delete failed for {public_id}: {str(e)}")
                continue
            if result.get("result") not in ("ok", "not found"):
                logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")

    async def list(self, prefix: str) -> List[ObjectMeta]:
        folder = _clean_path(prefix)
        try:
            resources = await asyncio.to_thread(
                cloudinary.api.resources,
                type="upload",
                prefix=f"{folder}/",
                max_results=500,
            )
            subfolders = await asyncio.to_thread(cloudinary.api.subfolders, folder)
        except CloudinaryNotFound:
            return []
        except CloudinaryError as e:
            logger.error(f"Cloudinary listing failed for {folder}: {str(e)}")
            raise BackendFailure(f"Failed to list {folder}") from e

        entries = [
            ObjectMeta(name=sub["name"], path=sub["path"])
            for sub in subfolders.get("folders", [])
        ]
        for resource in resources.get("resources", []):
            public_id = resource["public_id"]
            # resources() matches the prefix recursively; keep direct children only
            if "/" in public_id[len(folder) + 1:]:
                continue
            name = f"{public_id.rsplit('/', 1)[-1]}.{resource.get('format', '')}".rstrip(".")
            entries.append(ObjectMeta(name=name, path=f"{folder}/{name}", size=resource.get("bytes", 0)))
        return entries


def build_blob_store(settings) -> BlobStore:
    """Create the blob store selected by STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "cloudinary":
        if not (settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET):
            raise ValueError("STORAGE_BACKEND=cloudinary requires CLOUDINARY_* credentials")
        logger.info(f"Using Cloudinary blob store (cloud: {settings.CLOUDINARY_CLOUD_NAME})")
        return CloudinaryBlobStore(
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY,
            settings.CLOUDINARY_API_SECRET,
        )
    if backend == "memory":
        logger.warning("Using in-memory blob store; uploads are lost on restart")
        return InMemoryBlobStore(base_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads")
    if backend == "local":
        logger.info(f"Using local blob store at {settings.UPLOAD_DIR}")
        return LocalBlobStore(settings.UPLOAD_DIR, settings.PUBLIC_BASE_URL)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
