"""프로필 서비스 — 공개 프로필 조회와 본인 설정 변경.

Profile Service — Public profile lookup with stats, self-service updates
(profile fields, privacy, email preferences, queue settings) and post
pinning. An author has at most one pinned post.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.follow_repository import follow_repository
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.profile import (
    EmailPreferences,
    PrivacySettingsUpdate,
    ProfileResponse,
    ProfileStats,
    ProfileUpdate,
    QueueSettingsUpdate,
    SettingsResponse,
)
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.validation import is_valid_profile_link_url, is_valid_timezone

_PRIVACY_FIELDS: tuple[str, ...] = tuple(PrivacySettingsUpdate.model_fields)
_EMAIL_FIELDS: tuple[str, ...] = tuple(EmailPreferences.model_fields)
_QUEUE_FIELDS: tuple[str, ...] = tuple(QueueSettingsUpdate.model_fields)


def _set_fields(profile: Profile, data: dict[str, Any]) -> None:
    """None이 아닌 값만 반영 — Apply non-null values only."""
    for field, value in data.items():
        if value is not None:
            setattr(profile, field, value)


class ProfileService:
    """프로필 서비스."""

    async def get_profile(self, db: AsyncSession, username: str, viewer: Profile | None) -> ProfileResponse:
        """사용자명으로 공개 프로필 조회 — 게시글/팔로워/팔로잉 수 포함."""
        profile: Profile | None = await profile_repository.get_by_username(db, username)
        if profile is None or profile.is_banned:
            raise NotFoundError("User not found")

        stats: ProfileStats = ProfileStats(
            posts=await post_repository.count_published_by_author(db, profile.id),
            followers=await follow_repository.count_followers(db, profile.id),
            following=await follow_repository.count_following(db, profile.id),
        )
        is_own: bool = viewer is not None and viewer.id == profile.id
        is_following: bool = False
        if viewer is not None and not is_own:
            is_following = await follow_repository.get(db, viewer.id, profile.id) is not None

        return ProfileResponse(
            id=str(profile.id),
            username=profile.username,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            header_url=profile.header_url,
            bio=profile.bio,
            timezone=profile.timezone,
            role=profile.role,
            show_likes=profile.show_likes,
            show_comments=profile.show_comments,
            show_followers=profile.show_followers,
            show_following=profile.show_following,
            stats=stats,
            is_following=is_following,
            is_own=is_own,
            created_at=profile.created_at,
        )

    async def update_profile(self, db: AsyncSession, user: Profile, data: ProfileUpdate) -> ProfileResponse:
        """본인 프로필 수정 — 타임존과 이미지 URL을 검증합니다.

        Raises:
            BadRequestError: 잘못된 타임존 또는 URL (Invalid timezone or URL)
        """
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        if "timezone" in update_data and not is_valid_timezone(update_data["timezone"]):
            raise BadRequestError("Invalid timezone")
        for field in ("avatar_url", "header_url"):
            url: str | None = update_data.get(field)
            if url and not is_valid_profile_link_url(url):
                raise BadRequestError(f"Invalid {field.replace('_url', '')} URL")
        if "timezone" in update_data and update_data["timezone"] is None:
            update_data.pop("timezone")

        await profile_repository.update(db, user, update_data)
        return await self.get_profile(db, user.username, user)

    def get_settings(self, user: Profile) -> SettingsResponse:
        return SettingsResponse(
            privacy=PrivacySettingsUpdate(**{f: getattr(user, f) for f in _PRIVACY_FIELDS}),
            email=EmailPreferences(**{f: getattr(user, f) for f in _EMAIL_FIELDS}),
            queue=QueueSettingsUpdate(**{f: getattr(user, f) for f in _QUEUE_FIELDS}),
        )

    async def update_privacy(self, db: AsyncSession, user: Profile, data: PrivacySettingsUpdate) -> SettingsResponse:
        _set_fields(user, data.model_dump(exclude_unset=True))
        await db.flush()
        return self.get_settings(user)

    async def update_email_preferences(self, db: AsyncSession, user: Profile, data: EmailPreferences) -> SettingsResponse:
        _set_fields(user, data.model_dump(exclude_unset=True))
        await db.flush()
        return self.get_settings(user)

    async def update_queue_settings(self, db: AsyncSession, user: Profile, data: QueueSettingsUpdate) -> SettingsResponse:
        """큐 설정 — 발행 윈도우 시작과 끝이 같으면 거부."""
        values: dict[str, Any] = data.model_dump(exclude_unset=True)
        start: str = values.get("queue_window_start") or user.queue_window_start
        end: str = values.get("queue_window_end") or user.queue_window_end
        if start == end:
            raise BadRequestError("Queue window start and end must differ")
        _set_fields(user, values)
        await db.flush()
        return self.get_settings(user)

    # --- 게시글 고정 (Pinning) ---

    async def pin_post(self, db: AsyncSession, user: Profile, post_id: UUID) -> None:
        """게시글 고정 — 기존 고정 게시글은 해제됩니다."""
        post: Post | None = await post_repository.get_visible(db, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.author_id != user.id:
            raise ForbiddenError("You can only pin your own posts")
        await post_repository.unpin_all(db, user.id)
        await db.refresh(post)
        post.is_pinned = True
        await db.flush()

    async def unpin_post(self, db: AsyncSession, user: Profile, post_id: UUID) -> None:
        post: Post | None = await post_repository.get_by_id(db, post_id)
        if post is None or post.author_id != user.id:
            raise NotFoundError("Post not found")
        post.is_pinned = False
        await db.flush()


profile_service: ProfileService = ProfileService()
