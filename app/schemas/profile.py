"""프로필 관련 Pydantic 요청/응답 스키마 정의.

Profile request/response schemas: public profile, stats, self-service
updates for profile fields, privacy, email preferences and queue settings.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ProfileSummary(BaseModel):
    """게시글/댓글/알림에 포함되는 작성자 요약."""

    id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


class ProfileStats(BaseModel):
    posts: int = 0
    followers: int = 0
    following: int = 0


class ProfileResponse(BaseModel):
    """공개 프로필 응답 스키마.

    Public profile. ``is_following`` and ``is_own`` describe the viewer's
    relation to the profile and are False for anonymous viewers.
    """

    id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    header_url: str | None = None
    bio: str | None = None
    timezone: str
    role: int
    show_likes: bool
    show_comments: bool
    show_followers: bool
    show_following: bool
    stats: ProfileStats
    is_following: bool = False
    is_own: bool = False
    created_at: datetime


class ProfileUpdate(BaseModel):
    """프로필 수정 요청 (부분 업데이트)."""

    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=2000)
    avatar_url: str | None = None
    header_url: str | None = None
    timezone: str | None = None


class PrivacySettingsUpdate(BaseModel):
    show_likes: bool | None = None
    show_comments: bool | None = None
    show_followers: bool | None = None
    show_following: bool | None = None
    show_sensitive_posts: bool | None = None
    blur_sensitive_by_default: bool | None = None


class EmailPreferences(BaseModel):
    """이메일 알림 설정 — 응답과 부분 수정 모두에 사용."""

    email_likes: bool | None = None
    email_comments: bool | None = None
    email_reblogs: bool | None = None
    email_follows: bool | None = None
    email_mentions: bool | None = None
    email_frequency: Literal["immediate", "daily", "off"] | None = None


class QueueSettingsUpdate(BaseModel):
    """큐 발행 설정 — 윈도우는 프로필 타임존 기준 HH:MM."""

    queue_enabled: bool | None = None
    queue_paused: bool | None = None
    queue_posts_per_day: int | None = Field(default=None, ge=1, le=100)
    queue_window_start: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    queue_window_end: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class SettingsResponse(BaseModel):
    """내 설정 전체 조회 응답 (GET /profile/settings)."""

    privacy: PrivacySettingsUpdate
    email: EmailPreferences
    queue: QueueSettingsUpdate
