"""감사 로그 라우터.

Audit Log Router — Staff action history, newest first (MODERATOR and up).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_moderator
from app.database import get_db
from app.models.profile import Profile
from app.schemas.admin import AuditLogListResponse
from app.services.audit_service import audit_service

router: APIRouter = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_moderator)],
    action: Annotated[str | None, Query(description="액션 필터 (e.g. ban_user)")] = None,
    actor_id: Annotated[UUID | None, Query(description="수행자 ID")] = None,
    target_user_id: Annotated[UUID | None, Query(description="대상 사용자 ID")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 50,
) -> AuditLogListResponse:
    return await audit_service.list_logs(db, action, actor_id, target_user_id, page, per_page)
