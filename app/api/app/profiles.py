"""프로필 라우터 — 공개 프로필, 본인 설정, 게시글 고정.

Profile Router — Public profile pages (posts, likes, comments, followers,
following) and the current user's settings.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.interaction import FollowListResponse
from app.schemas.post import FeedResponse, ProfilePostsResponse
from app.schemas.profile import (
    EmailPreferences,
    PrivacySettingsUpdate,
    ProfileResponse,
    ProfileUpdate,
    QueueSettingsUpdate,
    SettingsResponse,
)
from app.services.follow_service import follow_service
from app.services.post_service import post_service
from app.services.profile_service import profile_service

router: APIRouter = APIRouter()


# --- 본인 설정 (Current user) ---


@router.patch("/me/profile", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ProfileResponse:
    """내 프로필 수정 — 표시 이름, 소개, 아바타/헤더, 타임존."""
    result: ProfileResponse = await profile_service.update_profile(db, current_user, data)
    await db.commit()
    return result


@router.get("/me/settings", response_model=SettingsResponse)
async def get_my_settings(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> SettingsResponse:
    return profile_service.get_settings(current_user)


@router.patch("/me/settings/privacy", response_model=SettingsResponse)
async def update_privacy(
    data: PrivacySettingsUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> SettingsResponse:
    result: SettingsResponse = await profile_service.update_privacy(db, current_user, data)
    await db.commit()
    return result


@router.patch("/me/settings/email", response_model=SettingsResponse)
async def update_email_preferences(
    data: EmailPreferences,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> SettingsResponse:
    result: SettingsResponse = await profile_service.update_email_preferences(db, current_user, data)
    await db.commit()
    return result


@router.patch("/me/settings/queue", response_model=SettingsResponse)
async def update_queue_settings(
    data: QueueSettingsUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> SettingsResponse:
    result: SettingsResponse = await profile_service.update_queue_settings(db, current_user, data)
    await db.commit()
    return result


@router.post("/posts/{post_id}/pin", status_code=204)
async def pin_post(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """게시글 고정 — 기존 고정 게시글은 해제됩니다."""
    await profile_service.pin_post(db, current_user, post_id)
    await db.commit()


@router.delete("/posts/{post_id}/pin", status_code=204)
async def unpin_post(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await profile_service.unpin_post(db, current_user, post_id)
    await db.commit()


# --- 공개 프로필 (Public profile pages) ---


@router.get("/profiles/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
) -> ProfileResponse:
    return await profile_service.get_profile(db, username, viewer)


@router.get("/profiles/{username}/posts", response_model=ProfilePostsResponse)
async def get_profile_posts(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    include_pinned: Annotated[bool, Query(description="고정 게시글을 따로 반환")] = False,
) -> ProfilePostsResponse:
    return await post_service.get_user_posts(db, username, viewer, limit, offset, include_pinned)


@router.get("/profiles/{username}/likes", response_model=FeedResponse)
async def get_liked_posts(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> FeedResponse:
    """좋아요한 게시글 — show_likes가 꺼져 있으면 본인만 조회 가능."""
    return await post_service.get_liked_posts(db, username, viewer, limit, offset)


@router.get("/profiles/{username}/comments", response_model=FeedResponse)
async def get_commented_posts(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> FeedResponse:
    return await post_service.get_commented_posts(db, username, viewer, limit, offset)


@router.get("/profiles/{username}/followers", response_model=FollowListResponse)
async def get_followers(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> FollowListResponse:
    return await follow_service.get_followers(db, username, viewer, page, per_page)


@router.get("/profiles/{username}/following", response_model=FollowListResponse)
async def get_following(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> FollowListResponse:
    return await follow_service.get_following(db, username, viewer, page, per_page)
