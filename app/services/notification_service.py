"""알림 서비스 — 알림 목록/읽음 처리 및 운영진 알림 생성.

Notification Service — Listing and read-state for a recipient's
notifications, plus fan-out helpers used by other services to notify staff.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.models.post import Post
from app.models.profile import Profile
from app.repositories.notification_repository import notification_repository
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.notification import NotificationListResponse, NotificationResponse
from app.schemas.profile import ProfileSummary
from app.utils.exceptions import NotFoundError
from app.utils.validation import content_preview

POST_PREVIEW_LENGTH: int = 100


def to_summary(profile: Profile) -> ProfileSummary:
    return ProfileSummary(
        id=str(profile.id),
        username=profile.username,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
    )


class NotificationService:
    """알림 서비스."""

    async def list_notifications(
        self,
        db: AsyncSession,
        recipient: Profile,
        page: int = 1,
        per_page: int = 50,
    ) -> NotificationListResponse:
        """알림 목록 — 행위자와 게시글 미리보기를 일괄 조회해 붙입니다.

        List notifications newest first. Actors and posts for the page are
        fetched with one query each.
        """
        notifications, total = await notification_repository.get_user_notifications(
            db, recipient.id, page, per_page
        )
        actors: dict[UUID, Profile] = await profile_repository.get_by_ids(
            db, [n.actor_id for n in notifications if n.actor_id]
        )
        posts: dict[UUID, Post] = await post_repository.get_by_ids(
            db, [n.post_id for n in notifications if n.post_id]
        )
        unread: int = await notification_repository.get_unread_count(db, recipient.id)

        items: list[NotificationResponse] = [
            self._to_response(n, actors, posts) for n in notifications
        ]
        return NotificationListResponse(
            items=items, total=total, page=page, per_page=per_page, unread_count=unread
        )

    def _to_response(
        self,
        notification: Notification,
        actors: dict[UUID, Profile],
        posts: dict[UUID, Post],
    ) -> NotificationResponse:
        actor: Profile | None = actors.get(notification.actor_id) if notification.actor_id else None
        post: Post | None = posts.get(notification.post_id) if notification.post_id else None
        return NotificationResponse(
            id=str(notification.id),
            notification_type=notification.notification_type,
            actor=to_summary(actor) if actor else None,
            post_id=str(notification.post_id) if notification.post_id else None,
            post_preview=content_preview(post.content, POST_PREVIEW_LENGTH) if post else None,
            comment_id=str(notification.comment_id) if notification.comment_id else None,
            report_id=str(notification.report_id) if notification.report_id else None,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )

    async def get_unread_count(self, db: AsyncSession, recipient: Profile) -> int:
        return await notification_repository.get_unread_count(db, recipient.id)

    async def mark_read(self, db: AsyncSession, recipient: Profile, notification_ids: Sequence[UUID]) -> int:
        return await notification_repository.mark_read(db, notification_ids, recipient.id)

    async def mark_all_read(self, db: AsyncSession, recipient: Profile) -> int:
        return await notification_repository.mark_all_read(db, recipient.id)

    async def delete_notification(self, db: AsyncSession, recipient: Profile, notification_id: UUID) -> None:
        if not await notification_repository.delete_for_recipient(db, notification_id, recipient.id):
            raise NotFoundError("Notification not found")

    async def clear_all(self, db: AsyncSession, recipient: Profile) -> int:
        return await notification_repository.clear_all(db, recipient.id)

    # --- 다른 서비스에서 사용하는 생성 헬퍼 (Creation helpers) ---

    async def notify(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        notification_type: str,
        actor_id: UUID | None = None,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
    ) -> Notification | None:
        """단일 알림 생성 — 본인 행위에는 알림을 만들지 않습니다."""
        if actor_id is not None and actor_id == recipient_id:
            return None
        return await notification_repository.create_notification(
            db,
            recipient_id=recipient_id,
            notification_type=notification_type,
            actor_id=actor_id,
            post_id=post_id,
            comment_id=comment_id,
        )

    async def notify_staff(
        self,
        db: AsyncSession,
        min_role: int,
        report_id: UUID,
        post_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> int:
        """min_role 이상 운영진 전원에게 report 알림 — Returns how many were sent."""
        staff: Sequence[Profile] = await profile_repository.get_staff(db, min_role)
        sent: int = 0
        for member in staff:
            if member.id == exclude_id:
                continue
            await notification_repository.create_notification(
                db,
                recipient_id=member.id,
                notification_type="report",
                post_id=post_id,
                report_id=report_id,
            )
            sent += 1
        return sent


notification_service: NotificationService = NotificationService()
