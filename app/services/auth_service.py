"""인증 서비스 — 회원가입, 로그인, 토큰 갱신, 로그아웃.

Auth Service — Registration, password login, refresh-token rotation and the
current-user payload. Login is rate limited per client IP.
"""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.profile import Profile
from app.models.token import RefreshToken
from app.repositories.auth_repository import auth_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.auth import LoginRequest, MeResponse, RefreshRequest, RegisterRequest, TokenResponse
from app.services.email_service import email_service
from app.utils.exceptions import (
    BadRequestError,
    DuplicateError,
    ForbiddenError,
    TooManyRequestsError,
    UnauthorizedError,
)
from app.utils.jwt import create_access_token, create_refresh_token, decode_token
from app.utils.password import hash_password, verify_password
from app.utils.rate_limit import RateLimitResult, check_rate_limit
from app.utils.roles import can_access_admin, get_role_name
from app.utils.timeutils import as_utc
from app.utils.validation import UsernameValidationResult, normalize_username, validate_username_format

logger = logging.getLogger(__name__)


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스."""

    def _build_jwt_payload(self, profile: Profile) -> dict[str, str | int]:
        return {"sub": str(profile.id), "username": profile.username, "role": profile.role}

    async def _generate_tokens(self, db: AsyncSession, profile: Profile) -> TokenResponse:
        """액세스/리프레시 토큰 쌍을 발급하고 리프레시 토큰을 저장합니다."""
        payload: dict[str, str | int] = self._build_jwt_payload(profile)
        access_token: str = create_access_token(payload)
        refresh_token: str = create_refresh_token(payload)

        expires_at: datetime = datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
        await auth_repository.create_refresh_token(db, user_id=profile.id, token=refresh_token, expires_at=expires_at)
        return TokenResponse(access_token=access_token, refresh_token=refresh_token)

    async def register(self, db: AsyncSession, data: RegisterRequest) -> TokenResponse:
        """회원가입 — 사용자명 형식 검증, 중복 확인, 환영 메일 발송.

        Raises:
            BadRequestError: 사용자명 형식 오류 (Reason from the username validator)
            DuplicateError: 사용자명/이메일 중복 (Username or email taken)
        """
        check: UsernameValidationResult = validate_username_format(data.username)
        if not check.valid:
            raise BadRequestError(check.error or "Invalid username")
        username: str = normalize_username(data.username)
        email: str = data.email.strip().lower()

        if await profile_repository.username_exists(db, username):
            raise DuplicateError("Username is already taken")
        if await profile_repository.email_exists(db, email):
            raise DuplicateError("An account with this email already exists")

        profile: Profile = await profile_repository.create(
            db,
            {
                "username": username,
                "email": email,
                "password_hash": hash_password(data.password),
                "display_name": data.display_name or username,
            },
        )
        tokens: TokenResponse = await self._generate_tokens(db, profile)
        await email_service.send_welcome(profile)
        logger.info("Registered new profile %s", username)
        return tokens

    async def login(self, db: AsyncSession, data: LoginRequest, client_ip: str) -> TokenResponse:
        """로그인 — IP당 15분 5회 제한, 정지 계정 거부.

        Raises:
            TooManyRequestsError: 로그인 시도 초과 (Login rate limit hit)
            UnauthorizedError: 잘못된 인증 정보 (Invalid credentials)
            ForbiddenError: 정지된 계정 (Banned account)
        """
        limit: RateLimitResult = check_rate_limit(f"login:{client_ip}", "login")
        if not limit.allowed:
            raise TooManyRequestsError("Too many login attempts. Please try again later.", limit)

        profile: Profile | None = await auth_repository.get_profile_by_login(db, data.login)
        if profile is None or not verify_password(data.password, profile.password_hash):
            raise UnauthorizedError("Invalid username or password")
        if profile.is_banned:
            raise ForbiddenError("This account has been banned")
        return await self._generate_tokens(db, profile)

    async def refresh_tokens(self, db: AsyncSession, data: RefreshRequest) -> TokenResponse:
        """리프레시 토큰 회전 — 사용한 토큰은 삭제 후 새 쌍 발급.

        Raises:
            UnauthorizedError: 유효하지 않거나 만료된 토큰 (Unknown, expired or malformed token)
        """
        db_token: RefreshToken | None = await auth_repository.get_refresh_token(db, data.refresh_token)
        if db_token is None:
            raise UnauthorizedError("Invalid refresh token")

        if as_utc(db_token.expires_at) < datetime.now(timezone.utc):
            await auth_repository.delete_refresh_token(db, data.refresh_token)
            raise UnauthorizedError("Refresh token has expired")

        try:
            payload: dict = decode_token(data.refresh_token)
        except jwt.InvalidTokenError:
            await auth_repository.delete_refresh_token(db, data.refresh_token)
            raise UnauthorizedError("Invalid refresh token")
        if payload.get("type") != "refresh":
            raise UnauthorizedError("Invalid refresh token")

        profile: Profile | None = await profile_repository.get_by_id(db, db_token.user_id)
        if profile is None or profile.is_banned:
            await auth_repository.delete_refresh_token(db, data.refresh_token)
            raise UnauthorizedError("User not found or inactive")

        await auth_repository.delete_refresh_token(db, data.refresh_token)
        return await self._generate_tokens(db, profile)

    async def logout(self, db: AsyncSession, refresh_token: str) -> None:
        await auth_repository.delete_refresh_token(db, refresh_token)

    def get_me(self, profile: Profile) -> MeResponse:
        return MeResponse(
            id=str(profile.id),
            username=profile.username,
            email=profile.email,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            role=profile.role,
            role_name=get_role_name(profile.role),
            lock_status=profile.lock_status,
            can_access_admin=can_access_admin(profile.role),
        )


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
