"""운영진 신고 처리 라우터 — 목록, 배정, 에스컬레이션, 처리.

Admin Report Router — The staff report queue. Staff only see reports whose
assigned role level is at or below their own.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_staff
from app.database import get_db
from app.models.profile import Profile
from app.schemas.report import (
    AssignRequest,
    EscalateRequest,
    ReportListResponse,
    ReportResponse,
    ReportStatsResponse,
    ResolveRequest,
)
from app.services.report_service import report_service
from app.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


@router.get("", response_model=ReportListResponse)
async def list_reports(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
    status: Annotated[str | None, Query(description="상태 필터")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ReportListResponse:
    return await report_service.list_reports(db, current_user, status, page, per_page)


@router.get("/stats", response_model=ReportStatsResponse)
async def get_report_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportStatsResponse:
    return await report_service.get_stats(db, current_user)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportResponse:
    return await report_service.get_report(db, current_user, report_id)


@router.post("/{report_id}/claim", response_model=ReportResponse)
async def claim_report(
    report_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportResponse:
    """신고 담당 — pending/escalated → reviewing."""
    result: ReportResponse = await report_service.claim_report(db, current_user, report_id)
    await db.commit()
    return result


@router.post("/{report_id}/assign", response_model=ReportResponse)
async def assign_report(
    report_id: UUID,
    data: AssignRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportResponse:
    try:
        assignee_id: UUID = UUID(data.assignee_id)
    except ValueError:
        raise BadRequestError("Invalid assignee id")
    result: ReportResponse = await report_service.assign_report(db, current_user, report_id, assignee_id)
    await db.commit()
    return result


@router.post("/{report_id}/escalate", response_model=ReportResponse)
async def escalate_report(
    report_id: UUID,
    data: EscalateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportResponse:
    result: ReportResponse = await report_service.escalate_report(
        db, current_user, report_id, data.target_role, data.reason
    )
    await db.commit()
    return result


@router.post("/{report_id}/resolve", response_model=ReportResponse)
async def resolve_report(
    report_id: UUID,
    data: ResolveRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_staff)],
) -> ReportResponse:
    """신고 처리 — resolved_ban | resolved_restrict | resolved_dismissed."""
    result: ReportResponse = await report_service.resolve_report(
        db, current_user, report_id, data.resolution, data.notes
    )
    await db.commit()
    return result
