"""콘텐츠 검수 서비스 — 업로드 검수 게이트와 자동 신고.

Moderation Service — The upload moderation gate, auto-flagging of posts
and the "pending reports" banner lookup. Moderation failures never block
the user: the gate fails open.
"""

import logging
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import Report
from app.models.post import Post
from app.models.profile import Profile
from app.repositories.report_repository import report_repository
from app.schemas.media import ModerateResponse
from app.services.notification_service import notification_service
from app.utils.moderation_client import ModerationResult, moderate_content
from app.utils.roles import JUNIOR_MOD

logger = logging.getLogger(__name__)

AUTO_MODERATION_SUBJECT: str = "minor_safety"


class ModerationService:
    """검수 서비스."""

    async def check_content_moderation(
        self,
        urls: Sequence[str],
        media_types: Sequence[str],
    ) -> ModerationResult:
        """여러 미디어를 순서대로 검수 — 첫 차단 항목에서 중단.

        Check each URL in order and stop at the first flagged one. Sensitive
        suggestions from the remaining items are merged.
        """
        reasons: list[str] = []
        suggest: bool = False
        for index, url in enumerate(urls):
            media_type: str = media_types[index] if index < len(media_types) else "image"
            result: ModerationResult = await moderate_content(url, media_type)
            if result.flagged:
                return ModerationResult(
                    safe=False,
                    flagged=True,
                    confidence=result.confidence,
                    suggest_sensitive=True,
                    reason=result.reason,
                    sensitive_reason=result.sensitive_reason,
                )
            if result.suggest_sensitive:
                suggest = True
                if result.sensitive_reason and result.sensitive_reason not in reasons:
                    reasons.append(result.sensitive_reason)
        return ModerationResult(
            safe=True,
            flagged=False,
            suggest_sensitive=suggest,
            sensitive_reason=", ".join(reasons) or None,
        )

    async def create_system_report(
        self,
        db: AsyncSession,
        reported_user_id: UUID,
        reason: str | None,
        post_id: UUID | None = None,
    ) -> Report:
        """자동 검수 신고 생성 후 JUNIOR_MOD 이상 운영진에게 알림."""
        report: Report = await report_repository.create(
            db,
            {
                "reporter_id": None,
                "reported_user_id": reported_user_id,
                "post_id": post_id,
                "subject": AUTO_MODERATION_SUBJECT,
                "comments": f"[Auto-moderation] {reason or 'Flagged content'}",
                "source": "auto_moderation",
                "status": "pending",
                "assigned_role": JUNIOR_MOD,
            },
        )
        await notification_service.notify_staff(db, JUNIOR_MOD, report.id, post_id=post_id)
        return report

    async def auto_flag_post(self, db: AsyncSession, post: Post, reason: str | None) -> Report:
        """게시글을 flagged로 표시하고 시스템 신고를 생성합니다."""
        post.moderation_status = "flagged"
        post.moderation_reason = reason
        post.moderated_at = datetime.now(timezone.utc)
        await db.flush()
        logger.warning("Post %s auto-flagged: %s", post.id, reason)
        return await self.create_system_report(db, post.author_id, reason, post.id)

    async def moderate_upload(
        self,
        db: AsyncSession,
        user: Profile,
        url: str,
        media_type: str,
        post_id: UUID | None = None,
    ) -> ModerateResponse:
        """업로드 직후 검수 (POST /moderate) — 차단 시 시스템 신고 생성.

        Runs the gate for one uploaded URL. Any failure, including the
        report insert, answers safe.
        """
        try:
            result: ModerationResult = await moderate_content(url, media_type)
            if result.flagged:
                async with db.begin_nested():
                    await self.create_system_report(db, user.id, result.reason, post_id)
        except Exception:
            logger.exception("Upload moderation failed for %s", url)
            return ModerateResponse(safe=True, flagged=False, reason="Moderation check failed")
        return ModerateResponse(
            safe=result.safe,
            flagged=result.flagged,
            suggest_sensitive=result.suggest_sensitive,
            reason=result.reason,
        )

    async def get_user_pending_reports(self, db: AsyncSession, user: Profile) -> int:
        """본인에게 처리 대기 중인 신고 건수 — 경고 배너용."""
        reports = await report_repository.list_pending_for_user(db, user.id)
        return len(reports)


moderation_service: ModerationService = ModerationService()
