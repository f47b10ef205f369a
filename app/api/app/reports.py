"""사용자 신고 라우터.

Report Router — File a report against a user and check reports pending
against yourself.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.report import ReportCreate, ReportResponse
from app.services.moderation_service import moderation_service
from app.services.report_service import report_service

router: APIRouter = APIRouter()


@router.post("", response_model=ReportResponse, status_code=201)
async def report_user(
    data: ReportCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ReportResponse:
    """사용자 신고 — 시간당 10건, 동일 대상 중복 신고 불가."""
    result: ReportResponse = await report_service.report_user(db, current_user, data)
    await db.commit()
    return result


@router.get("/pending")
async def get_my_pending_reports(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> dict[str, int]:
    """본인 대상 처리 대기 신고 수."""
    return {"count": await moderation_service.get_user_pending_reports(db, current_user)}
