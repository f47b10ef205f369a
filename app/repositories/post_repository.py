"""게시글 레포지토리 — 피드/프로필/큐/예약 발행 쿼리와 태그 관리.

Post Repository — Feed, profile, queue and scheduled-publish queries plus
tag upserts.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Comment, Like
from app.models.post import Post, PostTag, Tag
from app.models.profile import Profile
from app.repositories.base import BaseRepository


def _visible() -> tuple:
    """공개 노출 조건 — published이면서 검수 삭제되지 않은 게시글."""
    return (Post.status == "published", Post.moderation_status != "removed")


class PostRepository(BaseRepository[Post]):
    """게시글 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Post)

    async def get_visible(self, db: AsyncSession, post_id: UUID) -> Post | None:
        result = await db.execute(select(Post).where(Post.id == post_id, *_visible()))
        return result.scalar_one_or_none()

    async def list_by_author(
        self,
        db: AsyncSession,
        author_id: UUID,
        limit: int = 20,
        offset: int = 0,
        exclude_pinned: bool = False,
    ) -> Sequence[Post]:
        """작성자의 공개 게시글 — 고정 게시글 우선, 최신순."""
        query: Select = select(Post).where(Post.author_id == author_id, *_visible())
        if exclude_pinned:
            query = query.where(Post.is_pinned.is_(False))
        query = query.order_by(Post.is_pinned.desc(), Post.created_at.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_pinned(self, db: AsyncSession, author_id: UUID) -> Post | None:
        result = await db.execute(
            select(Post).where(Post.author_id == author_id, Post.is_pinned.is_(True), *_visible())
        )
        return result.scalars().first()

    async def unpin_all(self, db: AsyncSession, author_id: UUID) -> None:
        await db.execute(
            update(Post).where(Post.author_id == author_id, Post.is_pinned.is_(True)).values(is_pinned=False)
        )
        await db.flush()

    async def list_feed(
        self,
        db: AsyncSession,
        author_ids: Sequence[UUID] | None,
        excluded_author_ids: Sequence[UUID],
        limit: int,
        offset: int,
    ) -> Sequence[Post]:
        """피드 게시글 — author_ids가 None이면 전체 공개 게시글.

        Feed page, newest first. ``author_ids=None`` means the global feed.
        """
        query: Select = select(Post).where(*_visible())
        if author_ids is not None:
            query = query.where(Post.author_id.in_(list(author_ids)))
        if excluded_author_ids:
            query = query.where(Post.author_id.not_in(list(excluded_author_ids)))
        query = query.order_by(Post.created_at.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def list_by_tag(
        self,
        db: AsyncSession,
        tag_name: str,
        excluded_author_ids: Sequence[UUID],
        limit: int,
        offset: int,
    ) -> Sequence[Post]:
        query: Select = (
            select(Post)
            .join(PostTag, PostTag.post_id == Post.id)
            .join(Tag, Tag.id == PostTag.tag_id)
            .where(Tag.name == tag_name, *_visible())
        )
        if excluded_author_ids:
            query = query.where(Post.author_id.not_in(list(excluded_author_ids)))
        query = query.order_by(Post.created_at.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def list_liked_by(self, db: AsyncSession, user_id: UUID, limit: int, offset: int) -> Sequence[Post]:
        """사용자가 좋아요한 게시글 — 좋아요 최신순."""
        query: Select = (
            select(Post)
            .join(Like, Like.post_id == Post.id)
            .where(Like.user_id == user_id, *_visible())
            .order_by(Like.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def list_commented_by(self, db: AsyncSession, user_id: UUID, limit: int, offset: int) -> Sequence[Post]:
        """사용자가 댓글을 단 게시글 — 중복 제거, 마지막 댓글 최신순."""
        last_comment = (
            select(Comment.post_id, func.max(Comment.created_at).label("last_at"))
            .where(Comment.user_id == user_id)
            .group_by(Comment.post_id)
            .subquery()
        )
        query: Select = (
            select(Post)
            .join(last_comment, last_comment.c.post_id == Post.id)
            .where(*_visible())
            .order_by(last_comment.c.last_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def count_published_by_author(self, db: AsyncSession, author_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Post).where(
            Post.author_id == author_id, Post.status == "published"
        )
        return (await db.execute(query)).scalar() or 0

    # --- 큐 / 예약 (Queue and schedule) ---

    async def next_queue_position(self, db: AsyncSession, author_id: UUID) -> int:
        query: Select = select(func.max(Post.queue_position)).where(
            Post.author_id == author_id, Post.status == "queued"
        )
        current: int | None = (await db.execute(query)).scalar()
        return (current or 0) + 1

    async def get_queue(self, db: AsyncSession, author_id: UUID, limit: int | None = None) -> Sequence[Post]:
        query: Select = (
            select(Post)
            .where(Post.author_id == author_id, Post.status == "queued")
            .order_by(Post.queue_position.asc(), Post.created_at.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_due_scheduled(self, db: AsyncSession, now: datetime) -> Sequence[Post]:
        """발행 시각이 지난 예약 게시글 — Scheduled posts due at ``now``."""
        result = await db.execute(
            select(Post)
            .where(Post.status == "scheduled", Post.scheduled_for <= now)
            .order_by(Post.scheduled_for.asc())
        )
        return result.scalars().all()

    async def count_paced_since(self, db: AsyncSession, author_id: UUID, since: datetime) -> int:
        """큐 속도에 포함되는 발행 건수 — 큐에서 나간 게시글과 리블로그."""
        query: Select = select(func.count()).select_from(Post).where(
            Post.author_id == author_id,
            Post.status == "published",
            Post.published_at >= since,
            or_(Post.published_from_queue.is_(True), Post.original_post_id.is_not(None)),
        )
        return (await db.execute(query)).scalar() or 0

    async def list_rebloggers(self, db: AsyncSession, post_id: UUID, limit: int = 10) -> tuple[list[Profile], int]:
        """이 게시글을 리블로그한 사용자 — 중복 제거, 최신순, 발행된 리블로그만."""
        base = select(Post).where(Post.reblogged_from_id == post_id, Post.status == "published")
        total: int = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
        result = await db.execute(
            select(Profile)
            .join(Post, Post.author_id == Profile.id)
            .where(Post.reblogged_from_id == post_id, Post.status == "published")
            .order_by(Post.created_at.desc())
            .limit(limit)
        )
        seen: set[UUID] = set()
        users: list[Profile] = []
        for profile in result.scalars().all():
            if profile.id not in seen:
                seen.add(profile.id)
                users.append(profile)
        return users, total

    # --- 태그 (Tags) ---

    async def get_or_create_tags(self, db: AsyncSession, names: Sequence[str]) -> list[Tag]:
        """태그 upsert — 없는 이름만 새로 생성합니다."""
        if not names:
            return []
        result = await db.execute(select(Tag).where(Tag.name.in_(list(names))))
        existing: dict[str, Tag] = {tag.name: tag for tag in result.scalars().all()}
        tags: list[Tag] = []
        for name in names:
            tag: Tag | None = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                db.add(tag)
                existing[name] = tag
            tags.append(tag)
        await db.flush()
        return tags

    async def set_post_tags(self, db: AsyncSession, post_id: UUID, names: Sequence[str]) -> list[Tag]:
        """게시글 태그를 names로 교체 — Replace a post's tags."""
        await db.execute(delete(PostTag).where(PostTag.post_id == post_id))
        tags: list[Tag] = await self.get_or_create_tags(db, names)
        for tag in tags:
            db.add(PostTag(post_id=post_id, tag_id=tag.id))
        await db.flush()
        return tags

    async def get_tags_for_posts(self, db: AsyncSession, post_ids: Sequence[UUID]) -> dict[UUID, list[str]]:
        if not post_ids:
            return {}
        result = await db.execute(
            select(PostTag.post_id, Tag.name)
            .join(Tag, Tag.id == PostTag.tag_id)
            .where(PostTag.post_id.in_(list(post_ids)))
            .order_by(Tag.name)
        )
        tags: dict[UUID, list[str]] = {}
        for post_id, name in result.all():
            tags.setdefault(post_id, []).append(name)
        return tags

    async def count_by_status(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(select(Post.status, func.count()).group_by(Post.status))
        return {row[0]: row[1] for row in result.all()}

    async def count_flagged(self, db: AsyncSession) -> int:
        query: Select = select(func.count()).select_from(Post).where(Post.moderation_status == "flagged")
        return (await db.execute(query)).scalar() or 0


post_repository: PostRepository = PostRepository()
