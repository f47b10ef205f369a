"""게시글, 피드, 리블로그, 큐 관련 Pydantic 스키마 정의.

Post, feed, reblog and queue schemas.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.profile import ProfileSummary

PostType = Literal["text", "image", "gallery", "video", "audio", "link"]
PublishMode = Literal["now", "queue", "schedule", "draft"]
ReblogMode = Literal["instant", "standard", "queue", "schedule"]

# 게시글 유형별 필수 content 키 — Content keys required per post type
_REQUIRED_CONTENT: dict[str, tuple[str, ...]] = {
    "text": ("html",),
    "image": ("urls",),
    "gallery": ("urls",),
    "video": ("url",),
    "audio": ("url",),
    "link": ("url",),
}

MAX_GALLERY_IMAGES: int = 10


class PostCreate(BaseModel):
    """게시글 작성 요청 스키마.

    Attributes:
        post_type: 게시글 유형 (text | image | gallery | video | audio | link)
        content: 유형별 본문 JSON (Per-type content, see Post model)
        is_sensitive: 민감 콘텐츠 표시 (Marks the post as sensitive)
        tags: 태그 목록 — 소문자, '#' 제거 후 저장
        publish_mode: now | queue | schedule | draft
        scheduled_for: 예약 발행 시각 (publish_mode=schedule일 때 필수)
    """

    post_type: PostType
    content: dict[str, Any]
    is_sensitive: bool = False
    tags: list[str] = Field(default_factory=list, max_length=30)
    publish_mode: PublishMode = "now"
    scheduled_for: datetime | None = None

    @model_validator(mode="after")
    def _check_content(self) -> "PostCreate":
        for key in _REQUIRED_CONTENT[self.post_type]:
            if not self.content.get(key):
                raise ValueError(f"content.{key} is required for {self.post_type} posts")
        urls = self.content.get("urls")
        if urls is not None:
            if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
                raise ValueError("content.urls must be a list of URLs")
            limit: int = 1 if self.post_type == "image" else MAX_GALLERY_IMAGES
            if len(urls) > limit:
                raise ValueError(f"{self.post_type} posts allow at most {limit} images")
        if self.publish_mode == "schedule" and self.scheduled_for is None:
            raise ValueError("scheduled_for is required when scheduling a post")
        return self


class PostUpdate(BaseModel):
    """게시글 수정 (부분 업데이트) — tags를 주면 전체 교체."""

    content: dict[str, Any] | None = None
    is_sensitive: bool | None = None
    tags: list[str] | None = Field(default=None, max_length=30)


class PostResponse(BaseModel):
    """게시글 응답 — 작성자 요약과 통계 포함.

    Post with author summary and batched stats. ``has_*`` flags describe the
    viewer and are False for anonymous requests.
    """

    id: str
    author: ProfileSummary | None = None
    post_type: str
    content: dict[str, Any]
    is_sensitive: bool
    is_pinned: bool
    status: str
    moderation_status: str
    queue_position: int | None = None
    scheduled_for: datetime | None = None
    published_at: datetime | None = None
    original_post_id: str | None = None
    reblogged_from_id: str | None = None
    reblog_comment_html: str | None = None
    tags: list[str] = Field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    reblog_count: int = 0
    has_liked: bool = False
    has_commented: bool = False
    has_reblogged: bool = False
    created_at: datetime


class FeedResponse(BaseModel):
    posts: list[PostResponse]
    has_more: bool


class ProfilePostsResponse(BaseModel):
    """프로필 게시글 — include_pinned=true이면 고정 게시글을 분리해 반환."""

    pinned: PostResponse | None = None
    posts: list[PostResponse]
    has_more: bool


class ReblogRequest(BaseModel):
    """리블로그 요청.

    Modes: instant/standard publish now, queue appends to the posting queue,
    schedule needs ``scheduled_for``.
    """

    mode: ReblogMode = "instant"
    comment_html: str | None = Field(default=None, max_length=10000)
    tags: list[str] = Field(default_factory=list, max_length=30)
    scheduled_for: datetime | None = None

    @model_validator(mode="after")
    def _check_schedule(self) -> "ReblogRequest":
        if self.mode == "schedule" and self.scheduled_for is None:
            raise ValueError("scheduled_for is required when scheduling a reblog")
        return self


class QueueReorderRequest(BaseModel):
    """큐 순서 변경 — post_ids 순서대로 1..n 위치 부여."""

    post_ids: list[str] = Field(min_length=1)


class QueueResponse(BaseModel):
    """내 발행 큐 — queue_position 오름차순."""

    posts: list[PostResponse]


class RebloggersResponse(BaseModel):
    users: list[ProfileSummary]
    total: int
