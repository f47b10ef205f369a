"""게시글 통계 일괄 조회 및 PostResponse 변환.

Batched post stats and response hydration. A page of posts costs a fixed
number of GROUP BY queries; they run one after another on the request's
session since an ``AsyncSession`` cannot run statements concurrently.
"""

from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.post_repository import post_repository
from app.repositories.post_stats_repository import post_stats_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.post import PostResponse
from app.services.notification_service import to_summary


@dataclass
class PostStats:
    """게시글 ID 목록에 대한 통계 묶음.

    Count maps default to 0 for missing ids; viewer sets are empty for
    anonymous requests.
    """

    like_counts: dict[UUID, int] = field(default_factory=dict)
    comment_counts: dict[UUID, int] = field(default_factory=dict)
    reblog_counts: dict[UUID, int] = field(default_factory=dict)
    user_likes: set[UUID] = field(default_factory=set)
    user_comments: set[UUID] = field(default_factory=set)
    user_reblogs: set[UUID] = field(default_factory=set)
    tags: dict[UUID, list[str]] = field(default_factory=dict)


async def batch_fetch_post_stats(
    db: AsyncSession,
    post_ids: Sequence[UUID],
    user_id: UUID | None = None,
    include_tags: bool = False,
) -> PostStats:
    """여러 게시글의 좋아요/댓글/리블로그 수와 열람자 상호작용을 조회합니다.

    Args:
        post_ids: 대상 게시글 ID (빈 목록이면 쿼리 없이 반환)
        user_id: 열람자 ID — None이면 has_* 집합은 비어 있음
        include_tags: 태그 맵 포함 여부

    Returns:
        PostStats: 통계 묶음
    """
    if not post_ids:
        return PostStats()

    ids: list[UUID] = list(dict.fromkeys(post_ids))
    stats: PostStats = PostStats(
        like_counts=await post_stats_repository.like_counts(db, ids),
        comment_counts=await post_stats_repository.comment_counts(db, ids),
        reblog_counts=await post_stats_repository.reblog_counts(db, ids),
    )
    if user_id is not None:
        stats.user_likes = await post_stats_repository.liked_by_user(db, ids, user_id)
        stats.user_comments = await post_stats_repository.commented_by_user(db, ids, user_id)
        stats.user_reblogs = await post_stats_repository.reblogged_by_user(db, ids, user_id)
    if include_tags:
        stats.tags = await post_repository.get_tags_for_posts(db, ids)
    return stats


def build_post_response(post: Post, author: Profile | None, stats: PostStats) -> PostResponse:
    return PostResponse(
        id=str(post.id),
        author=to_summary(author) if author else None,
        post_type=post.post_type,
        content=post.content or {},
        is_sensitive=post.is_sensitive,
        is_pinned=post.is_pinned,
        status=post.status,
        moderation_status=post.moderation_status,
        queue_position=post.queue_position,
        scheduled_for=post.scheduled_for,
        published_at=post.published_at,
        original_post_id=str(post.original_post_id) if post.original_post_id else None,
        reblogged_from_id=str(post.reblogged_from_id) if post.reblogged_from_id else None,
        reblog_comment_html=post.reblog_comment_html,
        tags=stats.tags.get(post.id, []),
        like_count=stats.like_counts.get(post.id, 0),
        comment_count=stats.comment_counts.get(post.id, 0),
        reblog_count=stats.reblog_counts.get(post.id, 0),
        has_liked=post.id in stats.user_likes,
        has_commented=post.id in stats.user_comments,
        has_reblogged=post.id in stats.user_reblogs,
        created_at=post.created_at,
    )


async def hydrate_posts(
    db: AsyncSession,
    posts: Sequence[Post],
    viewer_id: UUID | None = None,
) -> list[PostResponse]:
    """게시글 목록을 작성자/통계/태그가 채워진 응답으로 변환합니다."""
    if not posts:
        return []
    authors: dict[UUID, Profile] = await profile_repository.get_by_ids(db, [p.author_id for p in posts])
    stats: PostStats = await batch_fetch_post_stats(db, [p.id for p in posts], viewer_id, include_tags=True)
    return [build_post_response(p, authors.get(p.author_id), stats) for p in posts]
