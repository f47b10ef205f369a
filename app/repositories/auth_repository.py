"""인증 레포지토리 — 리프레시 토큰 CRUD 및 로그인용 프로필 조회.

Auth Repository — Refresh token lifecycle and credential lookups.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.models.token import RefreshToken


class AuthRepository:
    """인증 관련 데이터베이스 쿼리를 담당하는 레포지토리."""

    async def get_profile_by_login(
        self,
        db: AsyncSession,
        login: str,
    ) -> Profile | None:
        """사용자명 또는 이메일로 프로필을 조회합니다 (대소문자 무시).

        Look up a profile by username or email, case-insensitively.
        """
        normalized: str = login.strip().lower()
        query: Select = select(Profile).where(
            or_(Profile.username == normalized, func.lower(Profile.email) == normalized)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def create_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        expires_at: datetime,
    ) -> RefreshToken:
        db_token: RefreshToken = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        db.add(db_token)
        await db.flush()
        await db.refresh(db_token)
        return db_token

    async def get_refresh_token(self, db: AsyncSession, token: str) -> RefreshToken | None:
        result = await db.execute(select(RefreshToken).where(RefreshToken.token == token))
        return result.scalar_one_or_none()

    async def delete_refresh_token(self, db: AsyncSession, token: str) -> bool:
        """리프레시 토큰 한 건 삭제 — Revoke one refresh token."""
        db_token: RefreshToken | None = await self.get_refresh_token(db, token)
        if db_token is None:
            return False

        await db.delete(db_token)
        await db.flush()
        return True

    async def delete_user_refresh_tokens(self, db: AsyncSession, user_id: UUID) -> None:
        """사용자의 모든 세션 종료 — Revoke every session (used on ban)."""
        await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        await db.flush()


auth_repository: AuthRepository = AuthRepository()
