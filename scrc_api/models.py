"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text

from scrc_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Member(Base):
    """
    Organisation member shown on the members pages.
    `details` holds the free-form profile fields (phone, addresses, family names...).
    """
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(32), nullable=False, index=True)
    name = Column(String, nullable=False)
    img = Column(String, nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    rank = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    img = Column(String, nullable=False)
    published_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    popup = Column(Boolean, nullable=False, default=False)
    rank = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class GalleryItem(Base):
    """Gallery entry: either an image (`img`) or an embedded video (`video_url`)."""
    __tablename__ = "gallery_items"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(16), nullable=False, default="video")
    img = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    title = Column(String, nullable=True)
    rank = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Notice(Base):
    __tablename__ = "notices"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    popup = Column(Boolean, nullable=False, default=False)
    rank = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class MemoryAlbum(Base):
    """
    Named photo album.
    Deleting an album deletes its images and their blobs.
    """
    __tablename__ = "memory_albums"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class MemoryImage(Base):
    """
    Image belonging to exactly one album.
    `storage_key` is the blob store path the file was uploaded under.
    """
    __tablename__ = "memory_images"

    id = Column(Integer, primary_key=True, index=True)
    album_id = Column(
        Integer,
        ForeignKey("memory_albums.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(String, nullable=False)
    storage_key = Column(String, nullable=False, index=True)
    rank = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PushToken(Base):
    """Registered push endpoint: an Expo token or a serialized web-push subscription."""
    __tablename__ = "push_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
