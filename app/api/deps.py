"""FastAPI 의존성 주입 모듈 — 인증 및 권한 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current profile from a
JWT and enforcing role-level access control on API endpoints.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies the JWT and returns its payload)
    3. 페이로드의 "sub" 필드로 프로필 조회, 정지 계정은 거부
       (Profile fetched by "sub"; banned accounts are rejected)

Authorization Flow (require_role):
    역할 레벨은 숫자가 클수록 권한이 높습니다. profile.role >= min_role이
    아니면 403을 반환합니다.
    (Higher level = more authority; 403 unless role >= min_role.)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.profile import Profile
from app.repositories.profile_repository import profile_repository
from app.utils.jwt import decode_token
from app.utils.roles import ADMIN, JUNIOR_MOD, MODERATOR

security: HTTPBearer = HTTPBearer()
optional_security: HTTPBearer = HTTPBearer(auto_error=False)


async def _profile_from_token(db: AsyncSession, token: str) -> Profile:
    try:
        payload: dict = decode_token(token)
        # 리프레시 토큰으로 API 호출 방지 — Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        profile_id: UUID = UUID(payload["sub"])
    except HTTPException:
        raise
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    profile: Profile | None = await profile_repository.get_by_id(db, profile_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    if profile.is_banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account has been banned")
    return profile


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """JWT 토큰에서 현재 인증된 프로필을 추출합니다.

    Decode the JWT from the Authorization header and return the profile.

    Raises:
        HTTPException(401): 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
        HTTPException(403): 정지된 계정 (Banned account)
    """
    return await _profile_from_token(db, credentials.credentials)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile | None:
    """비로그인 열람 허용 엔드포인트용 — 토큰이 없으면 None.

    Anonymous-friendly variant: no header means ``None``; a header that is
    present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return await _profile_from_token(db, credentials.credentials)


def require_role(min_role: int) -> Callable[..., Awaitable[Profile]]:
    """역할 레벨 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing ``profile.role >= min_role``.

    Args:
        min_role: 허용되는 최소 역할 레벨 (Minimum role level, inclusive)
    """
    async def _check(
        current_user: Annotated[Profile, Depends(get_current_user)],
    ) -> Profile:
        if current_user.role < min_role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user
    return _check


# 편의 의존성 — Pre-configured role dependencies
require_staff = require_role(JUNIOR_MOD)
require_moderator = require_role(MODERATOR)
require_admin = require_role(ADMIN)


def get_client_ip(request: Request) -> str:
    """프록시 헤더를 고려한 클라이언트 IP — 속도 제한 키로 사용."""
    forwarded: str | None = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip: str | None = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def parse_uuids(values: list[str], label: str = "id") -> list[UUID]:
    """요청 본문의 문자열 ID 목록을 UUID로 변환 — 형식 오류는 400."""
    try:
        return [UUID(v) for v in values]
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}")
