"""리블로그 및 발행 큐 서비스.

Reblog Service — Reblogging in every mode plus management of the author's
posting queue (list, reorder, remove, publish now).

Reblog modes:
    - instant / standard: 즉시 발행 (Published now)
    - queue: 큐 맨 뒤에 추가 (Appended to the posting queue)
    - schedule: 지정 시각에 발행 (Published by the scheduled cron)
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.post import PostResponse, QueueResponse, RebloggersResponse, ReblogRequest
from app.services.email_service import email_service
from app.services.notification_service import notification_service, to_summary
from app.services.post_service import normalize_tags
from app.services.post_stats_service import hydrate_posts
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.timeutils import as_utc, utc_now
from app.utils.validation import content_preview, strip_html


class ReblogService:
    """리블로그 서비스."""

    async def notify_reblog(self, db: AsyncSession, reblog: Post, reblogger: Profile) -> None:
        """원글 작성자에게 리블로그 알림 + 이메일 — 발행 시점에만 호출.

        The recipient is the author of the post that was reblogged directly;
        the notification points at the new reblog.
        """
        if reblog.reblogged_from_id is None:
            return
        source: Post | None = await post_repository.get_by_id(db, reblog.reblogged_from_id)
        if source is None or source.author_id == reblogger.id:
            return
        await notification_service.notify(db, source.author_id, "reblog", reblogger.id, reblog.id)
        recipient: Profile | None = await profile_repository.get_by_id(db, source.author_id)
        if recipient is not None:
            await email_service.send_reblog(
                recipient,
                reblogger,
                str(reblog.id),
                content_preview(source.content),
                strip_html(reblog.reblog_comment_html) or None,
            )

    async def reblog_post(
        self, db: AsyncSession, user: Profile, post_id: UUID, data: ReblogRequest
    ) -> PostResponse:
        """게시글을 리블로그합니다.

        The reblog copies the source's type, content and sensitivity.
        ``original_post_id`` always names the root of the chain.

        Raises:
            NotFoundError: 원글 없음 또는 비공개 (Source missing or hidden)
            ForbiddenError: 작성 제한 계정 (Restricted account)
            BadRequestError: 과거 예약 시각 (Scheduled time in the past)
        """
        if not user.can_post:
            raise ForbiddenError("Your account is restricted from posting")

        source: Post | None = await post_repository.get_visible(db, post_id)
        if source is None:
            raise NotFoundError("Post not found")

        now: datetime = utc_now()
        status: str = "published"
        queue_position: int | None = None
        scheduled_for: datetime | None = None
        if data.mode == "queue":
            status = "queued"
            queue_position = await post_repository.next_queue_position(db, user.id)
        elif data.mode == "schedule":
            scheduled_for = as_utc(data.scheduled_for)
            if scheduled_for is None or scheduled_for <= now:
                raise BadRequestError("Scheduled time must be in the future")
            status = "scheduled"

        reblog_data: dict[str, Any] = {
            "author_id": user.id,
            "post_type": source.post_type,
            "content": dict(source.content or {}),
            "is_sensitive": source.is_sensitive,
            "original_post_id": source.original_post_id or source.id,
            "reblogged_from_id": source.id,
            "reblog_comment_html": (data.comment_html or "").strip() or None,
            "status": status,
            "queue_position": queue_position,
            "scheduled_for": scheduled_for,
            "published_at": now if status == "published" else None,
        }
        reblog: Post = await post_repository.create(db, reblog_data)
        tags: list[str] = normalize_tags(data.tags)
        if tags:
            await post_repository.set_post_tags(db, reblog.id, tags)

        if status == "published":
            await self.notify_reblog(db, reblog, user)

        return (await hydrate_posts(db, [reblog], user.id))[0]

    async def get_rebloggers(self, db: AsyncSession, post_id: UUID, limit: int = 10) -> RebloggersResponse:
        users, total = await post_repository.list_rebloggers(db, post_id, limit)
        return RebloggersResponse(users=[to_summary(u) for u in users], total=total)

    # --- 발행 큐 (Posting queue) ---

    async def get_queue(self, db: AsyncSession, user: Profile) -> QueueResponse:
        posts: Sequence[Post] = await post_repository.get_queue(db, user.id)
        return QueueResponse(posts=await hydrate_posts(db, posts, user.id))

    async def reorder_queue(self, db: AsyncSession, user: Profile, post_ids: Sequence[UUID]) -> int:
        """큐 순서 변경 — 주어진 순서대로 1..n. 본인의 queued 게시글만 반영.

        Returns:
            int: 위치가 갱신된 게시글 수 (Posts repositioned)
        """
        posts: dict[UUID, Post] = await post_repository.get_by_ids(db, post_ids)
        updated: int = 0
        for position, post_id in enumerate(post_ids, start=1):
            post: Post | None = posts.get(post_id)
            if post is None or post.author_id != user.id or post.status != "queued":
                continue
            post.queue_position = position
            updated += 1
        await db.flush()
        return updated

    async def _get_own_pending(self, db: AsyncSession, user: Profile, post_id: UUID, statuses: tuple[str, ...]) -> Post:
        post: Post | None = await post_repository.get_by_id(db, post_id)
        if post is None or post.author_id != user.id or post.status not in statuses:
            raise NotFoundError("Queued post not found")
        return post

    async def remove_from_queue(self, db: AsyncSession, user: Profile, post_id: UUID) -> None:
        """큐에서 제거 — 게시글은 deleted로 소프트 삭제."""
        post: Post = await self._get_own_pending(db, user, post_id, ("queued",))
        post.status = "deleted"
        post.queue_position = None
        await db.flush()

    async def publish_now(self, db: AsyncSession, user: Profile, post_id: UUID) -> PostResponse:
        """큐/예약 게시글을 즉시 발행합니다."""
        post: Post = await self._get_own_pending(db, user, post_id, ("queued", "scheduled"))
        post.published_from_queue = post.status == "queued"
        post.status = "published"
        post.queue_position = None
        post.scheduled_for = None
        post.published_at = utc_now()
        await db.flush()
        if post.is_reblog:
            await self.notify_reblog(db, post, user)
        return (await hydrate_posts(db, [post], user.id))[0]


reblog_service: ReblogService = ReblogService()
