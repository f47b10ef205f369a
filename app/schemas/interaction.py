"""좋아요, 댓글, 팔로우 관련 Pydantic 스키마 정의.

Like, comment and follow schemas.
"""

from datetime import datetime

from pydantic import BaseModel

from app.schemas.profile import ProfileSummary

MAX_COMMENT_LENGTH: int = 2000


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int


class LikersResponse(BaseModel):
    users: list[ProfileSummary]
    has_liked: bool = False


class CommentCreate(BaseModel):
    """댓글 작성 — 공백 제거 후 1~2000자 (서비스에서 검증)."""

    content_html: str


class CommentResponse(BaseModel):
    id: str
    post_id: str
    content_html: str
    author: ProfileSummary
    is_own: bool = False
    created_at: datetime


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    count: int


class FollowStatusResponse(BaseModel):
    is_following: bool


class FollowListResponse(BaseModel):
    items: list[ProfileSummary]
    total: int
    page: int
    per_page: int


class BatchFollowStatusRequest(BaseModel):
    user_ids: list[str]
