"""발행 스케줄러 서비스 — 크론이 호출하는 예약/큐 게시글 발행.

Scheduler Service — Publishes due scheduled posts and drains each author's
posting queue at the configured daily rate. Invoked by the cron endpoints.

Queue pacing:
    target = floor(progress_through_window * posts_per_day)
    publish (target - posts already paced since the window opened) posts,
    by position. Posts that left the queue and reblogs both count.
The window is evaluated in the author's own timezone.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.services.reblog_service import reblog_service
from app.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class PublishRun:
    """크론 1회 실행 결과."""

    published: int = 0
    users_processed: int | None = None
    errors: list[str] = field(default_factory=list)


def _parse_hhmm(value: str | None, default: str) -> time:
    raw: str = value or default
    hour, minute = raw.split(":")[:2]
    return time(int(hour), int(minute))


def _zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def queue_target(profile: Profile, now: datetime) -> tuple[int, datetime] | None:
    """현재까지 발행됐어야 할 큐 게시글 수와 윈도우 시작 시각(UTC)을 계산합니다.

    Returns None when ``now`` falls outside the profile's posting window.
    A window whose end is before its start wraps past midnight; after
    midnight the window still opened on the previous day.
    """
    tz: ZoneInfo = _zone(profile.timezone)
    local_now: datetime = now.astimezone(tz)
    start_t: time = _parse_hhmm(profile.queue_window_start, "09:00")
    end_t: time = _parse_hhmm(profile.queue_window_end, "21:00")

    start: datetime = datetime.combine(local_now.date(), start_t, tzinfo=tz)
    end: datetime = datetime.combine(local_now.date(), end_t, tzinfo=tz)
    if end <= start:
        if local_now <= end:
            start -= timedelta(days=1)
        else:
            end += timedelta(days=1)
    if not start <= local_now <= end:
        return None

    progress: float = min((local_now - start) / (end - start), 1.0)
    target: int = math.floor(progress * (profile.queue_posts_per_day or 8))
    return target, start.astimezone(now.tzinfo)


class SchedulerService:
    """예약/큐 발행 서비스."""

    async def _publish(
        self, db: AsyncSession, post: Post, author: Profile | None, now: datetime, from_queue: bool = False
    ) -> None:
        post.status = "published"
        post.scheduled_for = None
        post.queue_position = None
        post.published_at = now
        post.published_from_queue = from_queue
        await db.flush()
        if post.is_reblog and author is not None:
            await reblog_service.notify_reblog(db, post, author)

    async def publish_scheduled(self, db: AsyncSession, now: datetime | None = None) -> PublishRun:
        """scheduled_for가 지난 예약 게시글을 모두 발행합니다.

        Each post is published inside its own SAVEPOINT; a failure is recorded
        in ``errors`` and the run continues.
        """
        now = now or utc_now()
        run: PublishRun = PublishRun()
        posts: Sequence[Post] = await post_repository.get_due_scheduled(db, now)
        authors: dict = await profile_repository.get_by_ids(db, [p.author_id for p in posts])

        for post in posts:
            try:
                async with db.begin_nested():
                    await self._publish(db, post, authors.get(post.author_id), now)
            except SQLAlchemyError as exc:
                logger.error("Failed to publish scheduled post %s: %s", post.id, exc)
                run.errors.append(f"Post {post.id}: {exc.__class__.__name__}")
                continue
            run.published += 1

        logger.info("Scheduled publish run: %d published, %d errors", run.published, len(run.errors))
        return run

    async def process_queues(self, db: AsyncSession, now: datetime | None = None) -> PublishRun:
        """큐가 켜진 모든 프로필의 큐를 발행 속도에 맞춰 소화합니다."""
        now = now or utc_now()
        profiles: Sequence[Profile] = await profile_repository.get_queue_enabled(db)
        run: PublishRun = PublishRun(users_processed=len(profiles))

        for profile in profiles:
            pacing: tuple[int, datetime] | None = queue_target(profile, now)
            if pacing is None:
                continue
            target, window_start = pacing
            try:
                already_paced: int = await post_repository.count_paced_since(db, profile.id, window_start)
                to_publish: int = target - already_paced
                if to_publish <= 0:
                    continue
                for post in await post_repository.get_queue(db, profile.id, limit=to_publish):
                    async with db.begin_nested():
                        await self._publish(db, post, profile, now, from_queue=True)
                    run.published += 1
            except SQLAlchemyError as exc:
                logger.error("Queue processing failed for %s: %s", profile.id, exc)
                run.errors.append(f"User {profile.id}: {exc.__class__.__name__}")

        logger.info(
            "Queue publish run: %d users, %d published, %d errors",
            run.users_processed, run.published, len(run.errors),
        )
        return run


scheduler_service: SchedulerService = SchedulerService()
