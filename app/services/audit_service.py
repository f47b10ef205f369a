"""감사 로그 서비스 — 운영진 조치 기록 및 조회.

Audit Service — Records staff actions. Writes go through a SAVEPOINT so a
failed audit insert is logged and rolled back on its own while the action
being audited still commits.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import AuditLog
from app.models.profile import Profile
from app.repositories.report_repository import audit_log_repository
from app.schemas.admin import AuditLogListResponse, AuditLogResponse

logger = logging.getLogger(__name__)


class AuditService:
    """감사 로그 서비스."""

    async def log_event(
        self,
        db: AsyncSession,
        actor: Profile,
        action: str,
        target_user: Profile | None = None,
        target_post_id: UUID | None = None,
        target_report_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog | None:
        """감사 이벤트 기록 — 실패해도 예외를 올리지 않고 None 반환.

        Returns:
            AuditLog | None: 기록된 행, 실패 시 None (None when the insert failed)
        """
        entry: AuditLog = AuditLog(
            actor_id=actor.id,
            actor_username=actor.username,
            actor_role=actor.role,
            action=action,
            target_user_id=target_user.id if target_user else None,
            target_user_username=target_user.username if target_user else None,
            target_post_id=target_post_id,
            target_report_id=target_report_id,
            details=details or {},
            ip_address=ip_address,
        )
        try:
            async with db.begin_nested():
                db.add(entry)
        except SQLAlchemyError as exc:
            logger.error("Failed to write audit log action=%s actor=%s: %s", action, actor.id, exc)
            return None
        return entry

    async def list_logs(
        self,
        db: AsyncSession,
        action: str | None = None,
        actor_id: UUID | None = None,
        target_user_id: UUID | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> AuditLogListResponse:
        logs, total = await audit_log_repository.list_logs(db, action, actor_id, target_user_id, page, per_page)
        items: list[AuditLogResponse] = [
            AuditLogResponse(
                id=str(log.id),
                actor_id=str(log.actor_id) if log.actor_id else None,
                actor_username=log.actor_username,
                actor_role=log.actor_role,
                action=log.action,
                target_user_id=str(log.target_user_id) if log.target_user_id else None,
                target_user_username=log.target_user_username,
                target_post_id=str(log.target_post_id) if log.target_post_id else None,
                target_report_id=str(log.target_report_id) if log.target_report_id else None,
                details=log.details or {},
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log in logs
        ]
        return AuditLogListResponse(items=items, total=total, page=page, per_page=per_page)


audit_service: AuditService = AuditService()
