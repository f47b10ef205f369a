"""좋아요 서비스 — 토글 및 좋아요한 사용자 목록.

Like Service — Like toggle with its notification/email side effects and the
likers list.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Like
from app.models.post import Post
from app.models.profile import Profile
from app.repositories.follow_repository import block_repository
from app.repositories.interaction_repository import like_repository
from app.repositories.notification_repository import notification_repository
from app.repositories.post_repository import post_repository
from app.repositories.post_stats_repository import post_stats_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.interaction import LikersResponse, LikeToggleResponse
from app.services.email_service import email_service
from app.services.notification_service import notification_service, to_summary
from app.utils.exceptions import ForbiddenError, NotFoundError
from app.utils.validation import content_preview


class LikeService:
    """좋아요 서비스."""

    async def _get_post(self, db: AsyncSession, post_id: UUID) -> Post:
        post: Post | None = await post_repository.get_visible(db, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def _like_count(self, db: AsyncSession, post_id: UUID) -> int:
        counts: dict[UUID, int] = await post_stats_repository.like_counts(db, [post_id])
        return counts.get(post_id, 0)

    async def toggle_like(self, db: AsyncSession, user: Profile, post_id: UUID) -> LikeToggleResponse:
        """좋아요 토글 — 이미 눌렀으면 취소, 아니면 추가.

        Liking notifies the author (never yourself) and may send an email;
        unliking removes that notification again.
        """
        post: Post = await self._get_post(db, post_id)

        existing: Like | None = await like_repository.get(db, user.id, post_id)
        if existing is not None:
            await db.delete(existing)
            await db.flush()
            await notification_repository.delete_matching(db, "like", user.id, post_id=post_id)
            return LikeToggleResponse(liked=False, like_count=await self._like_count(db, post_id))

        if await block_repository.is_blocked_either_way(db, user.id, post.author_id):
            raise ForbiddenError("Unable to like this post")

        await like_repository.create(db, {"user_id": user.id, "post_id": post_id})
        count: int = await self._like_count(db, post_id)

        if post.author_id != user.id:
            await notification_service.notify(db, post.author_id, "like", user.id, post_id)
            author: Profile | None = await profile_repository.get_by_id(db, post.author_id)
            if author is not None:
                await email_service.send_like(
                    author, user, str(post_id), content_preview(post.content), count
                )

        return LikeToggleResponse(liked=True, like_count=count)

    async def get_likers(
        self, db: AsyncSession, post_id: UUID, viewer: Profile | None, limit: int = 50
    ) -> LikersResponse:
        await self._get_post(db, post_id)
        rows: Sequence[tuple[Like, Profile]] = await like_repository.list_likers(db, post_id, limit)
        has_liked: bool = False
        if viewer is not None:
            has_liked = await like_repository.get(db, viewer.id, post_id) is not None
        return LikersResponse(users=[to_summary(p) for _, p in rows], has_liked=has_liked)


like_service: LikeService = LikeService()
