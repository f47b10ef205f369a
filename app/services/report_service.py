"""신고 서비스 — 사용자 신고 접수와 운영진 처리 흐름.

Report Service — User reports and the staff workflow.

Workflow:
    pending ─claim→ reviewing ─resolve→ resolved_ban | resolved_restrict | resolved_dismissed
       │                 │
       └──escalate──→ escalated ─claim→ reviewing ...

A report is only visible to staff whose role is at or above its
``assigned_role``. Escalation raises ``assigned_role`` and notifies the
staff at the new level.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import Report
from app.models.post import Post
from app.models.profile import Profile
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.repositories.report_repository import report_repository
from app.schemas.report import ReportCreate, ReportListResponse, ReportResponse, ReportStatsResponse
from app.services.admin_service import admin_service
from app.services.audit_service import audit_service
from app.services.notification_service import notification_service, to_summary
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError, TooManyRequestsError
from app.utils.rate_limit import RateLimitResult, check_rate_limit
from app.utils.roles import JUNIOR_MOD, can_moderate_user, get_escalation_targets
from app.utils.timeutils import utc_now

_CLAIMABLE: tuple[str, ...] = ("pending", "escalated")


def _parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise BadRequestError(f"Invalid {label}")


class ReportService:
    """신고 서비스."""

    async def _to_responses(self, db: AsyncSession, reports: Sequence[Report]) -> list[ReportResponse]:
        profile_ids: list[UUID] = [r.reported_user_id for r in reports]
        profile_ids += [r.reporter_id for r in reports if r.reporter_id]
        profiles: dict[UUID, Profile] = await profile_repository.get_by_ids(db, profile_ids)
        responses: list[ReportResponse] = []
        for report in reports:
            reporter: Profile | None = profiles.get(report.reporter_id) if report.reporter_id else None
            reported: Profile | None = profiles.get(report.reported_user_id)
            responses.append(
                ReportResponse(
                    id=str(report.id),
                    reporter=to_summary(reporter) if reporter else None,
                    reported_user=to_summary(reported) if reported else None,
                    post_id=str(report.post_id) if report.post_id else None,
                    subject=report.subject,
                    comments=report.comments,
                    source=report.source,
                    status=report.status,
                    assigned_to=str(report.assigned_to) if report.assigned_to else None,
                    assigned_role=report.assigned_role,
                    escalated_at=report.escalated_at,
                    escalation_reason=report.escalation_reason,
                    resolved_at=report.resolved_at,
                    resolution_notes=report.resolution_notes,
                    created_at=report.created_at,
                )
            )
        return responses

    async def report_user(self, db: AsyncSession, reporter: Profile, data: ReportCreate) -> ReportResponse:
        """사용자 신고 — 시간당 10건 제한, 본인/중복 신고 거부.

        Raises:
            TooManyRequestsError: 신고 속도 제한 초과 (10 reports per hour)
            BadRequestError: 자기 자신 신고 (Reporting yourself)
            DuplicateError: 처리 대기 중인 동일 신고 존재 (Open report exists)
        """
        limit: RateLimitResult = check_rate_limit(f"report:{reporter.id}", "report")
        if not limit.allowed:
            raise TooManyRequestsError("Too many reports. Please try again later.", limit)

        reported_id: UUID = _parse_uuid(data.reported_user_id, "user id")
        if reported_id == reporter.id:
            raise BadRequestError("You cannot report yourself")
        reported: Profile | None = await profile_repository.get_by_id(db, reported_id)
        if reported is None:
            raise NotFoundError("User not found")
        if await report_repository.has_open_report(db, reporter.id, reported_id):
            raise DuplicateError("You have already reported this user")

        post_id: UUID | None = _parse_uuid(data.post_id, "post id") if data.post_id else None
        report: Report = await report_repository.create(
            db,
            {
                "reporter_id": reporter.id,
                "reported_user_id": reported_id,
                "post_id": post_id,
                "subject": data.subject,
                "comments": (data.comments or "").strip() or None,
                "source": "user_report",
                "status": "pending",
                "assigned_role": JUNIOR_MOD,
            },
        )
        await notification_service.notify_staff(db, JUNIOR_MOD, report.id, post_id, exclude_id=reporter.id)
        return (await self._to_responses(db, [report]))[0]

    async def list_reports(
        self,
        db: AsyncSession,
        staff: Profile,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> ReportListResponse:
        reports, total = await report_repository.list_for_role(db, staff.role, status, page, per_page)
        return ReportListResponse(
            items=await self._to_responses(db, reports), total=total, page=page, per_page=per_page
        )

    async def _get_for_staff(self, db: AsyncSession, staff: Profile, report_id: UUID) -> tuple[Report, Profile | None]:
        """역할 레벨과 대상 사용자 역할을 확인한 신고와 피신고자."""
        report: Report | None = await report_repository.get_by_id(db, report_id)
        if report is None:
            raise NotFoundError("Report not found")
        if staff.role < report.assigned_role:
            raise ForbiddenError("This report requires a higher role level")
        reported: Profile | None = await profile_repository.get_by_id(db, report.reported_user_id)
        if reported is not None and not can_moderate_user(staff.role, reported.role):
            raise ForbiddenError("Cannot moderate a user with equal or higher role")
        return report, reported

    async def get_report(self, db: AsyncSession, staff: Profile, report_id: UUID) -> ReportResponse:
        report: Report | None = await report_repository.get_by_id(db, report_id)
        if report is None or staff.role < report.assigned_role:
            raise NotFoundError("Report not found")
        return (await self._to_responses(db, [report]))[0]

    async def claim_report(self, db: AsyncSession, staff: Profile, report_id: UUID) -> ReportResponse:
        report, _ = await self._get_for_staff(db, staff, report_id)
        if report.status not in _CLAIMABLE:
            raise BadRequestError("Report is not available to claim")
        report.assigned_to = staff.id
        report.status = "reviewing"
        await db.flush()
        return (await self._to_responses(db, [report]))[0]

    async def assign_report(
        self, db: AsyncSession, staff: Profile, report_id: UUID, assignee_id: UUID
    ) -> ReportResponse:
        """다른 운영진에게 배정 — 배정 대상도 신고의 역할 레벨 이상이어야 함."""
        report, _ = await self._get_for_staff(db, staff, report_id)
        if not report.is_open:
            raise BadRequestError("Report is already resolved")
        assignee: Profile | None = await profile_repository.get_by_id(db, assignee_id)
        if assignee is None:
            raise NotFoundError("User not found")
        if assignee.role < report.assigned_role:
            raise BadRequestError("Assignee does not have the required role level")

        report.assigned_to = assignee.id
        report.status = "reviewing"
        await db.flush()
        await audit_service.log_event(
            db, staff, "assign_report", target_report_id=report.id,
            details={"assignee_id": str(assignee.id), "assignee_username": assignee.username},
        )
        return (await self._to_responses(db, [report]))[0]

    async def escalate_report(
        self, db: AsyncSession, staff: Profile, report_id: UUID, target_role: int, reason: str
    ) -> ReportResponse:
        """상위 역할로 에스컬레이션 — 이력 기록 후 새 레벨 운영진에게 알림.

        Raises:
            BadRequestError: 유효하지 않은 대상 역할 (Invalid or not higher target)
        """
        if target_role not in get_escalation_targets(staff.role):
            raise BadRequestError("Invalid escalation target")
        report: Report | None = await report_repository.get_by_id(db, report_id)
        if report is None:
            raise NotFoundError("Report not found")
        if staff.role < report.assigned_role:
            raise ForbiddenError("This report requires a higher role level")
        if not report.is_open:
            raise BadRequestError("Report is already resolved")
        if target_role <= report.assigned_role:
            raise BadRequestError("Can only escalate to a higher role")

        from_role: int = report.assigned_role
        report.status = "escalated"
        report.assigned_role = target_role
        report.assigned_to = None
        report.escalated_by = staff.id
        report.escalated_at = utc_now()
        report.escalation_reason = reason
        await db.flush()

        await report_repository.add_escalation(db, report.id, from_role, target_role, staff.id, reason)
        await notification_service.notify_staff(db, target_role, report.id, report.post_id, exclude_id=staff.id)
        await audit_service.log_event(
            db, staff, "escalate_report", target_report_id=report.id,
            details={"from_role": from_role, "to_role": target_role, "reason": reason},
        )
        return (await self._to_responses(db, [report]))[0]

    async def resolve_report(
        self, db: AsyncSession, staff: Profile, report_id: UUID, resolution: str, notes: str | None = None
    ) -> ReportResponse:
        """신고 처리 — 제재 적용, 대상 게시글 복구/삭제, 감사 로그.

        ``resolved_dismissed`` restores a reported post; ban and restrict
        remove it.
        """
        report, reported = await self._get_for_staff(db, staff, report_id)
        if not report.is_open:
            raise BadRequestError("Report is already resolved")

        report.status = resolution
        report.resolved_by = staff.id
        report.resolved_at = utc_now()
        report.resolution_notes = notes
        await db.flush()

        if reported is not None:
            if resolution == "resolved_ban":
                await admin_service.apply_ban(db, staff, reported, notes or "Banned due to report")
            elif resolution == "resolved_restrict":
                await admin_service.apply_restrict(db, staff, reported, notes)

        if report.post_id is not None:
            post: Post | None = await post_repository.get_by_id(db, report.post_id)
            if post is not None:
                if resolution == "resolved_dismissed":
                    post.moderation_status = "approved"
                    post.moderation_reason = None
                    action: str = "restore_post"
                else:
                    post.moderation_status = "removed"
                    post.moderation_reason = notes or "Removed by moderation"
                    action = "remove_post"
                post.moderated_at = utc_now()
                post.moderated_by = staff.id
                await db.flush()
                await audit_service.log_event(
                    db, staff, action, target_user=reported, target_post_id=post.id,
                    target_report_id=report.id, details={"reason": notes} if notes else None,
                )

        await audit_service.log_event(
            db, staff, "resolve_report", target_user=reported, target_report_id=report.id,
            details={"resolution": resolution, "notes": notes},
        )
        return (await self._to_responses(db, [report]))[0]

    async def get_stats(self, db: AsyncSession, staff: Profile) -> ReportStatsResponse:
        counts: dict[str, int] = await report_repository.count_by_status(db, staff.role)
        return ReportStatsResponse(
            pending=counts.get("pending", 0),
            reviewing=counts.get("reviewing", 0),
            escalated=counts.get("escalated", 0),
            resolved=sum(v for k, v in counts.items() if k.startswith("resolved_")),
        )


report_service: ReportService = ReportService()
