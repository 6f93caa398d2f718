"""
Name normalization helpers.

External JSON uses `_id` and camelCase for a fixed set of fields while the
tables use `id` and snake_case. Album names and blob keys are sanitized here
as well, since both end up in storage paths.
"""
import os
import re
import secrets
import string
import time
from typing import Optional

from scrc_api.exceptions import InvalidAlbumName

EXTERNAL_ID = "_id"

# snake_case column -> external JSON key
EXTERNAL_NAMES = {
    "id": EXTERNAL_ID,
    "video_url": "videoUrl",
    "media_url": "mediaUrl",
    "published_at": "publishedAt",
    "created_at": "createdAt",
    "album_id": "albumId",
}

_ALBUM_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9_\- ]")
_EXTENSION_ALLOWED = re.compile(r"^\.[A-Za-z0-9]{1,10}$")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def external_name(field_name: str) -> str:
    """Map a column name to the key used in JSON responses."""
    return EXTERNAL_NAMES.get(field_name, field_name)


def sanitize_album_name(raw: Optional[str]) -> str:
    """
    Restrict an album name to letters, digits, underscore, hyphen and space.

    Raises:
        InvalidAlbumName: if nothing is left after sanitizing
    """
    safe = _ALBUM_NAME_DISALLOWED.sub("", str(raw or "")).strip()
    if not safe:
        raise InvalidAlbumName("Invalid name")
    return safe


def build_object_key(category: str, filename: Optional[str], bucket: Optional[str] = None) -> str:
    """
    Build a collision-resistant blob key.

    Example: memories/Picnic 2024/1718000000000_k3j9x2.jpg
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if not _EXTENSION_ALLOWED.match(ext):
        ext = ""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    name = f"{int(time.time() * 1000)}_{suffix}{ext}"
    parts = [category, bucket, name] if bucket else [category, name]
    return "/".join(parts)
