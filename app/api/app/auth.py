"""앱 인증 라우터 — 회원가입, 로그인, 토큰 갱신, 로그아웃, 내 정보.

App Auth Router — Registration, password login (rate limited per client IP),
refresh-token rotation, logout and the current-user payload.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, get_current_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.auth import LoginRequest, MeResponse, RefreshRequest, RegisterRequest, TokenResponse
from app.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """회원가입 — 사용자명 검증 후 토큰 쌍 발급, 환영 메일 발송."""
    result: TokenResponse = await auth_service.register(db, data)
    await db.commit()
    return result


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """로그인 — 사용자명 또는 이메일, IP당 15분 5회 제한.

    Login with username or email. Rate limited per client IP.
    """
    result: TokenResponse = await auth_service.login(db, data, get_client_ip(request))
    await db.commit()
    return result


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """토큰 갱신 — 사용한 리프레시 토큰은 폐기됩니다."""
    result: TokenResponse = await auth_service.refresh_tokens(db, data)
    await db.commit()
    return result


@router.post("/logout", status_code=204)
async def logout(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    await auth_service.logout(db, data.refresh_token)
    await db.commit()


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> MeResponse:
    return auth_service.get_me(current_user)
