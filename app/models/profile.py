"""프로필(사용자 계정) SQLAlchemy ORM 모델 정의.

Profile SQLAlchemy ORM model — one row per account. Holds login
credentials, public profile fields, privacy toggles, posting-queue
settings, email preferences and moderation state.

Tables:
    - profiles: 사용자 계정 및 공개 프로필 (Accounts and public profiles)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.utils.roles import USER


class Profile(Base):
    """프로필 모델.

    Profile model. ``role`` is an integer level (see app.utils.roles);
    ``lock_status`` is one of ``unlocked`` | ``restricted`` | ``banned``.

    Email preference defaults: likes and reblogs off; comments, follows and
    mentions on. ``email_frequency`` is ``immediate`` | ``daily`` | ``off``.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 사용자명 — 소문자 정규화 후 저장 (Stored lowercased, globally unique)
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # 공개 프로필 — Public profile fields
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    header_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)

    # 공개 범위 설정 — Privacy toggles
    show_likes: Mapped[bool] = mapped_column(Boolean, default=True)
    show_comments: Mapped[bool] = mapped_column(Boolean, default=True)
    show_followers: Mapped[bool] = mapped_column(Boolean, default=True)
    show_following: Mapped[bool] = mapped_column(Boolean, default=True)
    show_sensitive_posts: Mapped[bool] = mapped_column(Boolean, default=False)
    blur_sensitive_by_default: Mapped[bool] = mapped_column(Boolean, default=True)

    # 예약 발행 큐 설정 — Posting queue settings (window is local HH:MM)
    queue_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    queue_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    queue_posts_per_day: Mapped[int] = mapped_column(Integer, default=8)
    queue_window_start: Mapped[str] = mapped_column(String(5), default="09:00")
    queue_window_end: Mapped[str] = mapped_column(String(5), default="21:00")

    # 역할 및 제재 상태 — Role level and moderation state
    role: Mapped[int] = mapped_column(Integer, default=USER, nullable=False)
    lock_status: Mapped[str] = mapped_column(String(20), default="unlocked", nullable=False)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 이메일 알림 설정 — Email notification preferences
    email_likes: Mapped[bool] = mapped_column(Boolean, default=False)
    email_comments: Mapped[bool] = mapped_column(Boolean, default=True)
    email_reblogs: Mapped[bool] = mapped_column(Boolean, default=False)
    email_follows: Mapped[bool] = mapped_column(Boolean, default=True)
    email_mentions: Mapped[bool] = mapped_column(Boolean, default=True)
    email_frequency: Mapped[str] = mapped_column(String(20), default="immediate")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    refresh_tokens = relationship("RefreshToken", back_populates="profile", cascade="all, delete-orphan")

    @property
    def is_banned(self) -> bool:
        return self.lock_status == "banned"

    @property
    def can_post(self) -> bool:
        return self.lock_status not in ("restricted", "banned")
