"""관리자 역할 라우터 — 부여 가능한 역할 목록.

Admin Role Router — Roles the caller may assign (ADMIN only).
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import require_admin
from app.models.profile import Profile
from app.schemas.admin import RoleOption
from app.services.admin_service import admin_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[RoleOption])
async def list_assignable_roles(
    current_user: Annotated[Profile, Depends(require_admin)],
) -> list[RoleOption]:
    """호출자보다 낮은 역할 목록을 반환합니다."""
    return admin_service.get_assignable_roles(current_user)
