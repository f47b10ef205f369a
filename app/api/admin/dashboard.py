"""관리자 대시보드 라우터 — 사용자/게시글/신고 집계.

Admin Dashboard Router — Headline numbers for the moderation dashboard.

Permission: MODERATOR+
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_moderator
from app.database import get_db
from app.models.profile import Profile
from app.schemas.admin import AdminStatsResponse
from app.services.admin_service import admin_service

router: APIRouter = APIRouter()


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_moderator)],
) -> AdminStatsResponse:
    """대시보드 통계 — 신고 수는 호출자 역할 레벨 이하만 집계."""
    return await admin_service.get_stats(db, current_user)
