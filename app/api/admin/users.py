"""관리자 사용자 라우터 — 검색, 정지, 제한, 해제, 역할 변경.

Admin User Router — User search and lock-state changes (MODERATOR and up);
bans and role changes (ADMIN only).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin, require_moderator
from app.database import get_db
from app.models.profile import Profile
from app.schemas.admin import (
    AdminUserListResponse,
    AdminUserResponse,
    BanRequest,
    RestrictRequest,
    SetRoleRequest,
)
from app.services.admin_service import admin_service

router: APIRouter = APIRouter()


@router.get("", response_model=AdminUserListResponse)
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_moderator)],
    search: Annotated[str | None, Query(description="사용자명/이메일 검색")] = None,
    lock_status: Annotated[str | None, Query(description="unlocked | restricted | banned | all")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> AdminUserListResponse:
    return await admin_service.list_users(db, search, lock_status, page, per_page)


@router.post("/{user_id}/ban", response_model=AdminUserResponse)
async def ban_user(
    user_id: UUID,
    data: BanRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> AdminUserResponse:
    """계정 정지 (ADMIN) — 세션 폐기, IP가 주어지면 감사 로그에 기록."""
    result: AdminUserResponse = await admin_service.ban_user(
        db, current_user, user_id, data.reason, data.ip_address
    )
    await db.commit()
    return result


@router.post("/{user_id}/restrict", response_model=AdminUserResponse)
async def restrict_user(
    user_id: UUID,
    data: RestrictRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_moderator)],
) -> AdminUserResponse:
    result: AdminUserResponse = await admin_service.restrict_user(db, current_user, user_id, data.reason)
    await db.commit()
    return result


@router.post("/{user_id}/unlock", response_model=AdminUserResponse)
async def unlock_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_moderator)],
) -> AdminUserResponse:
    result: AdminUserResponse = await admin_service.unlock_user(db, current_user, user_id)
    await db.commit()
    return result


@router.put("/{user_id}/role", response_model=AdminUserResponse)
async def set_role(
    user_id: UUID,
    data: SetRoleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> AdminUserResponse:
    """역할 변경 (ADMIN) — 본인 불가, 대상은 호출자보다 낮은 역할."""
    result: AdminUserResponse = await admin_service.set_role(db, current_user, user_id, data.role)
    await db.commit()
    return result
