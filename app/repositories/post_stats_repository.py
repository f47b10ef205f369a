"""게시글 통계 집계 쿼리 — 좋아요/댓글/리블로그 수와 열람자 상호작용.

Post stats aggregation queries. Each method takes a list of post ids and
returns one GROUP BY result, so a page of N posts costs a fixed number of
queries regardless of N.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Comment, Like
from app.models.post import Post


class PostStatsRepository:
    """게시글 통계 레포지토리."""

    async def like_counts(self, db: AsyncSession, post_ids: Sequence[UUID]) -> dict[UUID, int]:
        result = await db.execute(
            select(Like.post_id, func.count()).where(Like.post_id.in_(list(post_ids))).group_by(Like.post_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def comment_counts(self, db: AsyncSession, post_ids: Sequence[UUID]) -> dict[UUID, int]:
        result = await db.execute(
            select(Comment.post_id, func.count()).where(Comment.post_id.in_(list(post_ids))).group_by(Comment.post_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def reblog_counts(self, db: AsyncSession, post_ids: Sequence[UUID]) -> dict[UUID, int]:
        """발행된 리블로그만 집계 — Only published reblogs count."""
        result = await db.execute(
            select(Post.reblogged_from_id, func.count())
            .where(Post.reblogged_from_id.in_(list(post_ids)), Post.status == "published")
            .group_by(Post.reblogged_from_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def liked_by_user(self, db: AsyncSession, post_ids: Sequence[UUID], user_id: UUID) -> set[UUID]:
        result = await db.execute(
            select(Like.post_id).where(Like.post_id.in_(list(post_ids)), Like.user_id == user_id)
        )
        return set(result.scalars().all())

    async def commented_by_user(self, db: AsyncSession, post_ids: Sequence[UUID], user_id: UUID) -> set[UUID]:
        result = await db.execute(
            select(Comment.post_id).distinct().where(Comment.post_id.in_(list(post_ids)), Comment.user_id == user_id)
        )
        return set(result.scalars().all())

    async def reblogged_by_user(self, db: AsyncSession, post_ids: Sequence[UUID], user_id: UUID) -> set[UUID]:
        """열람자의 리블로그 — 삭제된 리블로그는 제외 (queued/scheduled 포함)."""
        result = await db.execute(
            select(Post.reblogged_from_id).distinct().where(
                Post.reblogged_from_id.in_(list(post_ids)),
                Post.author_id == user_id,
                Post.status != "deleted",
            )
        )
        return set(result.scalars().all())


post_stats_repository: PostStatsRepository = PostStatsRepository()
