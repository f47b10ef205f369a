"""알림 레포지토리 — 알림 관련 DB 쿼리 담당.

Notification Repository — Recipient-scoped notification queries.
Every mutating query filters on ``recipient_id`` so one user can never
touch another user's notifications.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """알림 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def get_user_notifications(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[Notification], int]:
        """수신자의 알림 목록 — 최신순 페이지네이션."""
        query: Select = (
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc())
        )
        return await self.get_paginated(db, query, page, per_page)

    async def get_unread_count(self, db: AsyncSession, recipient_id: UUID) -> int:
        query: Select = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        )
        return (await db.execute(query)).scalar() or 0

    async def mark_read(self, db: AsyncSession, notification_ids: Sequence[UUID], recipient_id: UUID) -> int:
        """지정한 알림들을 읽음 처리 — Returns the number of rows updated."""
        if not notification_ids:
            return 0
        result = await db.execute(
            update(Notification)
            .where(Notification.id.in_(list(notification_ids)), Notification.recipient_id == recipient_id)
            .values(is_read=True)
        )
        await db.flush()
        return result.rowcount

    async def mark_all_read(self, db: AsyncSession, recipient_id: UUID) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await db.flush()
        return result.rowcount

    async def delete_for_recipient(self, db: AsyncSession, notification_id: UUID, recipient_id: UUID) -> bool:
        result = await db.execute(
            delete(Notification).where(
                Notification.id == notification_id, Notification.recipient_id == recipient_id
            )
        )
        await db.flush()
        return result.rowcount > 0

    async def clear_all(self, db: AsyncSession, recipient_id: UUID) -> int:
        result = await db.execute(delete(Notification).where(Notification.recipient_id == recipient_id))
        await db.flush()
        return result.rowcount

    async def delete_matching(
        self,
        db: AsyncSession,
        notification_type: str,
        actor_id: UUID,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
        recipient_id: UUID | None = None,
    ) -> None:
        """좋아요 취소/댓글 삭제 시 대응 알림 제거.

        Remove the notification created for an interaction that was undone.
        """
        stmt = delete(Notification).where(
            Notification.notification_type == notification_type,
            Notification.actor_id == actor_id,
        )
        if post_id is not None:
            stmt = stmt.where(Notification.post_id == post_id)
        if comment_id is not None:
            stmt = stmt.where(Notification.comment_id == comment_id)
        if recipient_id is not None:
            stmt = stmt.where(Notification.recipient_id == recipient_id)
        await db.execute(stmt)
        await db.flush()

    async def create_notification(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        notification_type: str,
        actor_id: UUID | None = None,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
        report_id: UUID | None = None,
    ) -> Notification:
        notification: Notification = Notification(
            recipient_id=recipient_id,
            actor_id=actor_id,
            notification_type=notification_type,
            post_id=post_id,
            comment_id=comment_id,
            report_id=report_id,
        )
        db.add(notification)
        await db.flush()
        await db.refresh(notification)
        return notification


notification_repository: NotificationRepository = NotificationRepository()
