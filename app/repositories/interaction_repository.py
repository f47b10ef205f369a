"""좋아요/댓글 레포지토리.

Like and Comment repositories.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Comment, Like
from app.models.profile import Profile
from app.repositories.base import BaseRepository


class LikeRepository(BaseRepository[Like]):
    def __init__(self) -> None:
        super().__init__(Like)

    async def get(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> Like | None:
        result = await db.execute(select(Like).where(Like.user_id == user_id, Like.post_id == post_id))
        return result.scalar_one_or_none()

    async def list_likers(
        self, db: AsyncSession, post_id: UUID, limit: int = 50
    ) -> Sequence[tuple[Like, Profile]]:
        """좋아요한 사용자 목록 — 최신순."""
        result = await db.execute(
            select(Like, Profile)
            .join(Profile, Profile.id == Like.user_id)
            .where(Like.post_id == post_id)
            .order_by(Like.created_at.desc())
            .limit(limit)
        )
        return [(item, profile) for item, profile in result]


class CommentRepository(BaseRepository[Comment]):
    def __init__(self) -> None:
        super().__init__(Comment)

    async def list_for_post(
        self, db: AsyncSession, post_id: UUID
    ) -> Sequence[tuple[Comment, Profile]]:
        """게시글 댓글 — 오래된 순 (Oldest first)."""
        result = await db.execute(
            select(Comment, Profile)
            .join(Profile, Profile.id == Comment.user_id)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc())
        )
        return [(item, profile) for item, profile in result]

    async def count_for_post(self, db: AsyncSession, post_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
        return (await db.execute(query)).scalar() or 0


like_repository: LikeRepository = LikeRepository()
comment_repository: CommentRepository = CommentRepository()
