"""
Pydantic schemas for request and response data validation.

Request bodies accept the external camelCase keys (videoUrl, mediaUrl,
publishedAt) as well as the column names. Responses rename the primary key
to `_id` and the snake_case columns to camelCase.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Literal, Optional, List

from scrc_api.utils.naming import external_name


MemberType = Literal[
    "respected", "lifetime", "helper", "Founding", "Lifetime", "Senior-Citizen", "donation"
]
GalleryType = Literal["image", "video"]


class InboundModel(BaseModel):
    """Base for request bodies. Unknown keys (including `_id`) are dropped."""

    model_config = ConfigDict(
        alias_generator=external_name,
        populate_by_name=True,
        extra="ignore",
    )


class OutboundModel(BaseModel):
    """Base for responses built from SQLAlchemy models."""

    model_config = ConfigDict(
        alias_generator=external_name,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Members ---

class MemberDetails(InboundModel):
    """Free-form member profile fields, stored as JSON under their external keys."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    phone: Optional[str] = None
    email: Optional[str] = None
    permanentAddress: Optional[str] = None
    temporaryAddress: Optional[str] = None
    address: Optional[str] = None
    organization: Optional[str] = None
    position: Optional[str] = None
    since: Optional[str] = None
    father: Optional[str] = None
    mother: Optional[str] = None
    grandfather: Optional[str] = None
    grandmother: Optional[str] = None
    spouse: Optional[str] = None
    dateOfBirth: Optional[str] = None
    occupation: Optional[str] = None
    donationAmount: Optional[str] = None


class MemberCreate(InboundModel):
    type: MemberType
    name: str = Field(min_length=1)
    img: str = Field(min_length=1)
    details: MemberDetails = Field(default_factory=MemberDetails)
    rank: int = 0


class MemberUpdate(InboundModel):
    type: Optional[MemberType] = None
    name: Optional[str] = None
    img: Optional[str] = None
    details: Optional[MemberDetails] = None
    rank: Optional[int] = None


class MemberResponse(OutboundModel):
    id: int
    type: str
    name: str
    img: str
    details: dict = Field(default_factory=dict)
    rank: int
    created_at: datetime


# --- News ---

class NewsCreate(InboundModel):
    """`published_at` is stamped by the server, any client value is ignored."""

    title: str = Field(min_length=1)
    text: str = Field(min_length=1)
    img: str = Field(min_length=1)
    active: bool = True
    popup: bool = False
    rank: int = 0


class NewsUpdate(InboundModel):
    title: Optional[str] = None
    text: Optional[str] = None
    img: Optional[str] = None
    published_at: Optional[datetime] = None
    active: Optional[bool] = None
    popup: Optional[bool] = None
    rank: Optional[int] = None


class NewsResponse(OutboundModel):
    id: int
    title: str
    text: str
    img: str
    published_at: datetime
    active: bool
    popup: bool
    rank: int
    created_at: datetime


# --- Gallery ---

class GalleryItemCreate(InboundModel):
    type: GalleryType = "video"
    img: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    rank: int = 0


class GalleryItemUpdate(InboundModel):
    type: Optional[GalleryType] = None
    img: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    rank: Optional[int] = None


class GalleryItemResponse(OutboundModel):
    id: int
    type: str
    img: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    rank: int
    created_at: datetime


# --- Notices ---

class NoticeCreate(InboundModel):
    title: str = Field(min_length=1)
    text: str = Field(min_length=1)
    media_url: Optional[str] = None
    active: bool = True
    popup: bool = False
    rank: int = 0


class NoticeUpdate(InboundModel):
    title: Optional[str] = None
    text: Optional[str] = None
    media_url: Optional[str] = None
    active: Optional[bool] = None
    popup: Optional[bool] = None
    rank: Optional[int] = None


class NoticeResponse(OutboundModel):
    id: int
    title: str
    text: str
    media_url: Optional[str] = None
    active: bool
    popup: bool
    rank: int
    created_at: datetime


# --- Reorder ---

class ReorderRequest(BaseModel):
    """
    Request schema for PUT /api/{resource}/reorder.
    Entries are validated individually; malformed ones are dropped, not rejected.
    """
    updates: List[Any]


# --- Memories ---

class AlbumCreate(BaseModel):
    name: Optional[str] = None


class AlbumResponse(BaseModel):
    name: str


class AlbumSummary(BaseModel):
    name: str
    count: int
    cover: Optional[str] = None


class MemoryImageResponse(OutboundModel):
    id: int
    album_id: int
    url: str
    rank: int
    created_at: datetime


class UploadedImagesResponse(BaseModel):
    uploaded: List[str]


class UploadResponse(BaseModel):
    url: str


# --- Auth ---

class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class TokenResponse(BaseModel):
    token: str


# --- Messaging ---

class ContactRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    message: str = Field(min_length=1)


class PushTokenRegistration(BaseModel):
    token: Optional[str] = None


class OkResponse(BaseModel):
    ok: bool = True
