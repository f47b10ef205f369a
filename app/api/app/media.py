"""미디어 라우터 — 업로드 presign, 업로드 검수, 음악/GIF 검색.

Media Router — Presigned uploads, the post-upload moderation check, and the
music and GIF search proxies.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.media import (
    GifSearchResponse,
    ModerateRequest,
    ModerateResponse,
    PresignRequest,
    PresignResponse,
    Track,
    TrackSearchResponse,
)
from app.services.gif_service import get_gif_service
from app.services.moderation_service import moderation_service
from app.services.music_service import MusicNotConfiguredError, MusicSearchError, get_music_service
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError, NotFoundError

router: APIRouter = APIRouter()


@router.post("/uploads/presign", response_model=PresignResponse)
async def presign_upload(
    data: PresignRequest,
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PresignResponse:
    """presigned PUT URL 발급 — 클라이언트가 스토리지에 직접 업로드."""
    return storage_service.create_presigned_upload(current_user, data)


@router.post("/moderate", response_model=ModerateResponse)
async def moderate(
    data: ModerateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ModerateResponse:
    """업로드된 URL 검수 — 차단 시 신고 생성, 오류 시 안전으로 응답."""
    post_id: UUID | None = None
    if data.post_id:
        try:
            post_id = UUID(data.post_id)
        except ValueError:
            raise BadRequestError("Invalid post id")
    result: ModerateResponse = await moderation_service.moderate_upload(
        db, current_user, data.url, data.media_type, post_id
    )
    await db.commit()
    return result


@router.get("/music/search", response_model=TrackSearchResponse)
async def search_music(
    current_user: Annotated[Profile, Depends(get_current_user)],
    q: Annotated[str, Query(description="검색어 (2자 이상)")] = "",
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> TrackSearchResponse:
    """음악 검색 — 자격 증명이 없으면 200과 빈 목록 + error."""
    if len(q.strip()) < 2:
        raise BadRequestError("Query must be at least 2 characters")
    try:
        return await get_music_service().search_tracks(q.strip(), limit)
    except MusicNotConfiguredError:
        return TrackSearchResponse(tracks=[], error="Spotify integration not configured")
    except MusicSearchError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Search failed")


@router.get("/music/tracks/{track_id}", response_model=Track)
async def get_track(
    track_id: str,
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> Track:
    try:
        track: Track | None = await get_music_service().get_track(track_id)
    except MusicNotConfiguredError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Spotify integration not configured")
    except MusicSearchError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Search failed")
    if track is None:
        raise NotFoundError("Track not found")
    return track


@router.get("/gifs", response_model=GifSearchResponse)
async def search_gifs(
    q: Annotated[str | None, Query(description="검색어, 없으면 추천 GIF")] = None,
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    pos: Annotated[str | None, Query(description="다음 페이지 커서")] = None,
) -> GifSearchResponse:
    return await get_gif_service().search(q, limit, pos)
