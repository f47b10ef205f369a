"""미디어 관련 Pydantic 스키마 — 업로드 presign, 검수, 음악/GIF 검색.

Media schemas: presigned upload, moderation check, music and GIF search.
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

UploadType = Literal["avatar", "header", "post_image", "post_video", "post_audio"]


class PresignRequest(BaseModel):
    """업로드 presign 요청 — post_* 유형은 post_id 필수."""

    upload_type: UploadType
    content_type: str
    post_id: UUID | None = None
    index: int = Field(default=0, ge=0, le=99)
    file_size: int | None = Field(default=None, ge=0)


class PresignResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str
    max_size: int
    media_type: str
    expires_in: int


class ModerateRequest(BaseModel):
    url: str
    media_type: Literal["image", "video"] = "image"
    post_id: str | None = None


class ModerateResponse(BaseModel):
    """검수 결과 — 오류 시에도 safe=True (fail open)."""

    safe: bool
    flagged: bool
    suggest_sensitive: bool = False
    reason: str | None = None


class Track(BaseModel):
    id: str
    name: str
    artist: str
    album: str
    album_art: str | None = None
    preview_url: str | None = None
    duration: int
    external_url: str


class TrackSearchResponse(BaseModel):
    tracks: list[Track]
    error: str | None = None


class Gif(BaseModel):
    id: str
    url: str
    preview_url: str
    width: int
    height: int


class GifSearchResponse(BaseModel):
    gifs: list[Gif]
    next: str = ""
