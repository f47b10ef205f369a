"""피드 서비스 — 홈 피드와 태그 피드.

Feed Service — Home feed and tag feed, both newest first with offset
pagination. ``has_more`` is true when a full page came back.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.follow_repository import block_repository, follow_repository
from app.repositories.post_repository import post_repository
from app.schemas.post import FeedResponse
from app.services.post_stats_service import hydrate_posts


class FeedService:
    """피드 서비스."""

    async def get_feed(
        self,
        db: AsyncSession,
        viewer: Profile | None,
        limit: int = 20,
        offset: int = 0,
    ) -> FeedResponse:
        """홈 피드를 조회합니다.

        Anonymous viewers and viewers who follow nobody get every visible
        post. Otherwise the feed is limited to followed authors plus the
        viewer. Authors blocked in either direction are always excluded.
        """
        author_ids: list[UUID] | None = None
        excluded: set[UUID] = set()
        if viewer is not None:
            following: list[UUID] = await follow_repository.get_following_ids(db, viewer.id)
            if following:
                author_ids = [*following, viewer.id]
            excluded = await block_repository.get_related_ids(db, viewer.id)

        posts: Sequence[Post] = await post_repository.list_feed(
            db, author_ids, list(excluded), limit, offset
        )
        return FeedResponse(
            posts=await hydrate_posts(db, posts, viewer.id if viewer else None),
            has_more=len(posts) == limit,
        )

    async def get_tag_feed(
        self,
        db: AsyncSession,
        tag: str,
        viewer: Profile | None,
        limit: int = 20,
        offset: int = 0,
    ) -> FeedResponse:
        name: str = tag.strip().lstrip("#").lower()
        excluded: set[UUID] = set()
        if viewer is not None:
            excluded = await block_repository.get_related_ids(db, viewer.id)
        posts: Sequence[Post] = await post_repository.list_by_tag(db, name, list(excluded), limit, offset)
        return FeedResponse(
            posts=await hydrate_posts(db, posts, viewer.id if viewer else None),
            has_more=len(posts) == limit,
        )


feed_service: FeedService = FeedService()
