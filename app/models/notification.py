"""알림 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model.

Tables:
    - notifications: 사용자 알림 (Activity notifications)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Notification(Base):
    """알림 모델 — 다른 사용자의 활동을 수신자에게 전달.

    Notification model. ``actor_id`` is the profile that caused it and is
    empty for system notifications (e.g. an auto-moderation report).

    Notification Types (notification_type):
        - "follow": 새 팔로워 (New follower)
        - "like": 내 게시글 좋아요 (Like on my post)
        - "comment": 내 게시글 댓글 (Comment on my post, comment_id set)
        - "reblog": 내 게시글 리블로그 (Reblog of my post)
        - "mention": 게시글/댓글에서 멘션 (Mentioned in a post)
        - "report": 검수 대기열 신고 (Report awaiting staff, report_id set)
    """

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True)
    notification_type: Mapped[str] = mapped_column(String(20), nullable=False)
    post_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True)
    comment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    report_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("reports.id", ondelete="CASCADE"), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
    )
