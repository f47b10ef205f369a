"""프로필 레포지토리 — 사용자명 조회, 운영진 조회, 관리자 검색.

Profile Repository — Username lookups, staff lookups and the admin user
search.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.moderation import Report
from app.models.profile import Profile
from app.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """프로필 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Profile)

    async def get_by_username(self, db: AsyncSession, username: str) -> Profile | None:
        result = await db.execute(select(Profile).where(Profile.username == username.strip().lower()))
        return result.scalar_one_or_none()

    async def get_by_usernames(self, db: AsyncSession, usernames: Sequence[str]) -> Sequence[Profile]:
        """여러 사용자명을 한 번에 조회 — 멘션 처리용.

        Fetch all profiles whose username is in ``usernames``.
        """
        if not usernames:
            return []
        result = await db.execute(select(Profile).where(Profile.username.in_(list(usernames))))
        return result.scalars().all()

    async def username_exists(self, db: AsyncSession, username: str) -> bool:
        return await self.exists(db, {"username": username.strip().lower()})

    async def email_exists(self, db: AsyncSession, email: str) -> bool:
        query: Select = select(func.count()).select_from(Profile).where(
            func.lower(Profile.email) == email.strip().lower()
        )
        return ((await db.execute(query)).scalar() or 0) > 0

    async def get_staff(self, db: AsyncSession, min_role: int) -> Sequence[Profile]:
        """min_role 이상의 운영진 목록 — Staff at or above ``min_role``."""
        result = await db.execute(
            select(Profile).where(Profile.role >= min_role, Profile.lock_status != "banned")
        )
        return result.scalars().all()

    async def search_users(
        self,
        db: AsyncSession,
        search: str | None = None,
        lock_status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[tuple[Profile, int]], int]:
        """관리자 사용자 검색 — 신고 건수 포함.

        Admin user search by username substring and lock status. Each row
        comes back with the number of reports filed against that user.

        Returns:
            tuple[list[tuple[Profile, int]], int]: ((프로필, 신고 수) 목록, 전체 개수)
        """
        query: Select = select(Profile)
        if search:
            query = query.where(Profile.username.ilike(f"%{search.strip().lower()}%"))
        if lock_status:
            query = query.where(Profile.lock_status == lock_status)
        query = query.order_by(Profile.created_at.desc())

        profiles, total = await self.get_paginated(db, query, page, per_page)

        counts: dict[UUID, int] = {}
        if profiles:
            count_result = await db.execute(
                select(Report.reported_user_id, func.count())
                .where(Report.reported_user_id.in_([p.id for p in profiles]))
                .group_by(Report.reported_user_id)
            )
            counts = {row[0]: row[1] for row in count_result.all()}

        return [(p, counts.get(p.id, 0)) for p in profiles], total

    async def count_by_lock_status(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(select(Profile.lock_status, func.count()).group_by(Profile.lock_status))
        return {row[0]: row[1] for row in result.all()}

    async def count_all(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(Profile))).scalar() or 0

    async def get_queue_enabled(self, db: AsyncSession) -> Sequence[Profile]:
        """큐 발행 대상 — queue_enabled이고 일시정지가 아닌 프로필."""
        result = await db.execute(
            select(Profile).where(Profile.queue_enabled.is_(True), Profile.queue_paused.is_(False))
        )
        return result.scalars().all()


profile_repository: ProfileRepository = ProfileRepository()
