"""관리자 서비스 — 사용자 제재, 역할 변경, 대시보드 통계.

Admin Service — User search, ban/restrict/unlock, role assignment and the
dashboard numbers. Every action writes an audit row.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.repositories.auth_repository import auth_repository
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.repositories.report_repository import report_repository
from app.schemas.admin import AdminStatsResponse, AdminUserListResponse, AdminUserResponse, RoleOption
from app.services.audit_service import audit_service
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.roles import (
    TRUSTED_USER,
    TRUSTED_USER_INVITE_CODES,
    can_assign_role,
    can_moderate_user,
    get_assignable_roles,
    get_role_name,
)
from app.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


def to_admin_user(profile: Profile, report_count: int = 0) -> AdminUserResponse:
    return AdminUserResponse(
        id=str(profile.id),
        username=profile.username,
        email=profile.email,
        display_name=profile.display_name,
        role=profile.role,
        role_name=get_role_name(profile.role),
        lock_status=profile.lock_status,
        banned_at=profile.banned_at,
        ban_reason=profile.ban_reason,
        report_count=report_count,
        created_at=profile.created_at,
    )


class AdminService:
    """관리자 서비스."""

    async def _get_target(self, db: AsyncSession, actor: Profile, user_id: UUID) -> Profile:
        """제재 대상 조회 — 본인 또는 동급 이상 역할은 거부."""
        target: Profile | None = await profile_repository.get_by_id(db, user_id)
        if target is None:
            raise NotFoundError("User not found")
        if target.id == actor.id:
            raise BadRequestError("You cannot moderate your own account")
        if not can_moderate_user(actor.role, target.role):
            raise ForbiddenError("Cannot moderate a user with equal or higher role")
        return target

    async def list_users(
        self,
        db: AsyncSession,
        search: str | None = None,
        lock_status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> AdminUserListResponse:
        status_filter: str | None = None if lock_status in (None, "", "all") else lock_status
        rows, total = await profile_repository.search_users(db, search, status_filter, page, per_page)
        return AdminUserListResponse(
            items=[to_admin_user(p, count) for p, count in rows],
            total=total,
            page=page,
            per_page=per_page,
        )

    # --- 제재 적용 (Lock state changes, shared with report resolution) ---

    async def apply_ban(
        self,
        db: AsyncSession,
        actor: Profile,
        target: Profile,
        reason: str,
        ip_address: str | None = None,
    ) -> None:
        """계정 정지 — 모든 세션(리프레시 토큰)도 폐기합니다."""
        target.lock_status = "banned"
        target.banned_at = utc_now()
        target.ban_reason = reason
        await db.flush()
        await auth_repository.delete_user_refresh_tokens(db, target.id)

        if ip_address:
            await audit_service.log_event(
                db, actor, "ip_ban", target_user=target,
                details={"ip_address": ip_address, "reason": reason},
                ip_address=ip_address,
            )
        await audit_service.log_event(db, actor, "ban_user", target_user=target, details={"reason": reason})
        logger.info("User %s banned by %s", target.username, actor.username)

    async def apply_restrict(self, db: AsyncSession, actor: Profile, target: Profile, reason: str | None = None) -> None:
        target.lock_status = "restricted"
        await db.flush()
        await audit_service.log_event(
            db, actor, "restrict_user", target_user=target, details={"reason": reason} if reason else None
        )

    async def ban_user(
        self, db: AsyncSession, actor: Profile, user_id: UUID, reason: str, ip_address: str | None = None
    ) -> AdminUserResponse:
        target: Profile = await self._get_target(db, actor, user_id)
        await self.apply_ban(db, actor, target, reason, ip_address)
        return to_admin_user(target)

    async def restrict_user(
        self, db: AsyncSession, actor: Profile, user_id: UUID, reason: str | None = None
    ) -> AdminUserResponse:
        target: Profile = await self._get_target(db, actor, user_id)
        await self.apply_restrict(db, actor, target, reason)
        return to_admin_user(target)

    async def unlock_user(self, db: AsyncSession, actor: Profile, user_id: UUID) -> AdminUserResponse:
        target: Profile = await self._get_target(db, actor, user_id)
        target.lock_status = "unlocked"
        target.banned_at = None
        target.ban_reason = None
        await db.flush()
        await audit_service.log_event(db, actor, "unlock_user", target_user=target)
        return to_admin_user(target)

    async def set_role(self, db: AsyncSession, actor: Profile, user_id: UUID, new_role: int) -> AdminUserResponse:
        """역할 변경 (ADMIN 전용).

        Raises:
            BadRequestError: 본인 역할 변경 (Changing your own role)
            ForbiddenError: 부여 불가 역할 또는 동급 이상 대상
                            (Role not assignable, or target at/above actor)
            NotFoundError: 대상 없음 (Unknown user)
        """
        if user_id == actor.id:
            raise BadRequestError("Cannot change your own role")
        if not can_assign_role(actor.role, new_role):
            raise ForbiddenError(f"Cannot assign role {get_role_name(new_role)}")

        target: Profile | None = await profile_repository.get_by_id(db, user_id)
        if target is None:
            raise NotFoundError("User not found")
        if target.role >= actor.role:
            raise ForbiddenError("Cannot modify a user with equal or higher role")

        old_role: int = target.role
        invite_codes: int = (
            TRUSTED_USER_INVITE_CODES if old_role < TRUSTED_USER <= new_role else 0
        )
        target.role = new_role
        await db.flush()

        await audit_service.log_event(
            db,
            actor,
            "change_role",
            target_user=target,
            details={
                "old_role": old_role,
                "new_role": new_role,
                "old_role_name": get_role_name(old_role),
                "new_role_name": get_role_name(new_role),
                "invite_codes_granted": invite_codes,
            },
        )
        return to_admin_user(target)

    def get_assignable_roles(self, actor: Profile) -> list[RoleOption]:
        return [RoleOption(**role) for role in get_assignable_roles(actor.role)]

    async def get_stats(self, db: AsyncSession, actor: Profile) -> AdminStatsResponse:
        """대시보드 통계 — 신고 수는 열람자 역할 레벨 이하만 집계."""
        lock_counts: dict[str, int] = await profile_repository.count_by_lock_status(db)
        post_counts: dict[str, int] = await post_repository.count_by_status(db)
        report_counts: dict[str, int] = await report_repository.count_by_status(db, actor.role)
        return AdminStatsResponse(
            total_users=await profile_repository.count_all(db),
            banned_users=lock_counts.get("banned", 0),
            restricted_users=lock_counts.get("restricted", 0),
            published_posts=post_counts.get("published", 0),
            flagged_posts=await post_repository.count_flagged(db),
            pending_reports=report_counts.get("pending", 0),
            escalated_reports=report_counts.get("escalated", 0),
        )


admin_service: AdminService = AdminService()
