"""멘션 처리 서비스 — @username 알림 및 이메일 발송.

Mention fan-out: one ``mention`` notification per mentioned profile plus a
preference-aware email. No retry; an email failure never undoes the
notification row.
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.repositories.notification_repository import notification_repository
from app.repositories.profile_repository import profile_repository
from app.services.email_service import email_service
from app.utils.mentions import extract_mentions
from app.utils.validation import content_preview

logger = logging.getLogger(__name__)


class MentionService:
    """멘션 서비스."""

    async def process_mentions(
        self,
        db: AsyncSession,
        content: str | None,
        author_id: UUID,
        post_id: UUID,
    ) -> int:
        """본문의 멘션을 처리하고 알림 건수를 반환합니다.

        Look up every mentioned username, skip the author and unknown names,
        insert a notification and send an email for each remaining profile.

        Args:
            content: 멘션을 찾을 HTML 또는 평문 (HTML or plain text to scan)
            author_id: 작성자 ID — 자기 자신 멘션은 무시 (Author, never notified)
            post_id: 멘션이 포함된 게시글 ID (Post carrying the mention)

        Returns:
            int: 생성된 멘션 알림 수 (Notifications created)
        """
        usernames: list[str] = extract_mentions(content or "")
        if not usernames:
            return 0

        profiles: Sequence[Profile] = await profile_repository.get_by_usernames(db, usernames)
        recipients: list[Profile] = [p for p in profiles if p.id != author_id]
        if not recipients:
            return 0

        author: Profile | None = await profile_repository.get_by_id(db, author_id)
        preview: str = content_preview({"html": content}, 100)

        for recipient in recipients:
            await notification_repository.create_notification(
                db,
                recipient_id=recipient.id,
                notification_type="mention",
                actor_id=author_id,
                post_id=post_id,
            )
            if author is not None:
                await email_service.send_mention(recipient, author, str(post_id), preview)

        logger.info("Processed %d mention(s) on post %s", len(recipients), post_id)
        return len(recipients)


mention_service: MentionService = MentionService()
