"""게시글 및 태그 SQLAlchemy ORM 모델 정의.

Post and tag SQLAlchemy ORM models.

Tables:
    - posts: 게시글 및 리블로그 (Original posts and reblogs)
    - tags: 태그 이름 (Normalised, lowercase tag names)
    - post_tags: 게시글-태그 매핑 (Post to tag association)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, Integer, Text, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Post(Base):
    """게시글 모델.

    Post model. A reblog is a post row whose ``reblogged_from_id`` points at
    the post it was reblogged from and whose ``original_post_id`` always
    points at the root of the chain.

    Post types: text | image | gallery | video | audio | link
    Status: published | queued | scheduled | draft | deleted
    Moderation status: approved | flagged | removed

    ``content`` is a JSON object whose keys depend on the post type, e.g.
    ``{"html": ...}`` for text, ``{"urls": [...], "caption_html": ...}`` for
    image/gallery, ``{"url": ..., "thumbnail_url": ..., "embed": {...}}`` for
    video.
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_sensitive: Mapped[bool] = mapped_column(Boolean, default=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)

    # 발행 상태 — Publishing state
    status: Mapped[str] = mapped_column(String(20), default="published", nullable=False)
    queue_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_from_queue: Mapped[bool] = mapped_column(Boolean, default=False)

    # 리블로그 체인 — Reblog chain
    original_post_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    reblogged_from_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    reblog_comment_html: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 검수 상태 — Moderation state
    moderation_status: Mapped[str] = mapped_column(String(20), default="approved", nullable=False)
    moderation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    moderated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_posts_author_status", "author_id", "status"),
        Index("ix_posts_status_scheduled", "status", "scheduled_for"),
        Index("ix_posts_reblogged_from", "reblogged_from_id"),
    )

    @property
    def is_reblog(self) -> bool:
        return self.reblogged_from_id is not None


class Tag(Base):
    """태그 모델 — 이름은 소문자, 앞의 '#' 제거 후 저장."""

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class PostTag(Base):
    __tablename__ = "post_tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    tag_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "tag_id", name="uq_post_tag"),
    )
