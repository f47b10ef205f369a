"""알림 관련 Pydantic 스키마 정의.

Notification list and read-state schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.profile import ProfileSummary


class NotificationResponse(BaseModel):
    """알림 응답 — 행위자 요약과 게시글 미리보기(최대 100자) 포함."""

    id: str
    notification_type: str
    actor: ProfileSummary | None = None
    post_id: str | None = None
    post_preview: str | None = None
    comment_id: str | None = None
    report_id: str | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    page: int
    per_page: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadRequest(BaseModel):
    notification_ids: list[str] = Field(min_length=1)


class UpdatedCountResponse(BaseModel):
    updated: int
