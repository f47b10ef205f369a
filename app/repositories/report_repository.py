"""신고/감사 로그 레포지토리.

Report, escalation history and audit log repositories.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import OPEN_REPORT_STATUSES, AuditLog, EscalationHistory, Report
from app.repositories.base import BaseRepository


class ReportRepository(BaseRepository[Report]):
    """신고 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Report)

    async def has_open_report(self, db: AsyncSession, reporter_id: UUID, reported_user_id: UUID) -> bool:
        """같은 신고자가 처리 대기 중인 신고를 이미 냈는지."""
        query: Select = select(func.count()).select_from(Report).where(
            Report.reporter_id == reporter_id,
            Report.reported_user_id == reported_user_id,
            Report.status.in_(OPEN_REPORT_STATUSES),
        )
        return ((await db.execute(query)).scalar() or 0) > 0

    async def list_for_role(
        self,
        db: AsyncSession,
        max_role: int,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Report], int]:
        """역할 레벨로 볼 수 있는 신고 목록 — assigned_role <= max_role.

        Reports visible at ``max_role``. ``status=None`` means every open
        report, ``status="all"`` disables the status filter.
        """
        query: Select = select(Report).where(Report.assigned_role <= max_role)
        if status is None:
            query = query.where(Report.status.in_(OPEN_REPORT_STATUSES))
        elif status != "all":
            query = query.where(Report.status == status)
        query = query.order_by(Report.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def list_pending_for_user(self, db: AsyncSession, reported_user_id: UUID) -> Sequence[Report]:
        result = await db.execute(
            select(Report)
            .where(Report.reported_user_id == reported_user_id, Report.status.in_(OPEN_REPORT_STATUSES))
            .order_by(Report.created_at.desc())
        )
        return result.scalars().all()

    async def count_by_status(self, db: AsyncSession, max_role: int | None = None) -> dict[str, int]:
        query: Select = select(Report.status, func.count()).group_by(Report.status)
        if max_role is not None:
            query = query.where(Report.assigned_role <= max_role)
        result = await db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def add_escalation(
        self,
        db: AsyncSession,
        report_id: UUID,
        from_role: int,
        to_role: int,
        escalated_by: UUID,
        reason: str,
    ) -> EscalationHistory:
        entry: EscalationHistory = EscalationHistory(
            report_id=report_id,
            from_role=from_role,
            to_role=to_role,
            escalated_by=escalated_by,
            reason=reason,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def get_escalations(self, db: AsyncSession, report_id: UUID) -> Sequence[EscalationHistory]:
        result = await db.execute(
            select(EscalationHistory)
            .where(EscalationHistory.report_id == report_id)
            .order_by(EscalationHistory.created_at.asc())
        )
        return result.scalars().all()


class AuditLogRepository(BaseRepository[AuditLog]):
    def __init__(self) -> None:
        super().__init__(AuditLog)

    async def list_logs(
        self,
        db: AsyncSession,
        action: str | None = None,
        actor_id: UUID | None = None,
        target_user_id: UUID | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        query: Select = select(AuditLog)
        if action:
            query = query.where(AuditLog.action == action)
        if actor_id:
            query = query.where(AuditLog.actor_id == actor_id)
        if target_user_id:
            query = query.where(AuditLog.target_user_id == target_user_id)
        query = query.order_by(AuditLog.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)


report_repository: ReportRepository = ReportRepository()
audit_log_repository: AuditLogRepository = AuditLogRepository()
