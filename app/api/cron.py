"""크론 라우터 — 예약 게시글 발행과 큐 발행.

Cron Router — Endpoints hit by an external scheduler. When CRON_SECRET is
set, requests must carry ``Authorization: Bearer <CRON_SECRET>``.

Schedule:
    - /scheduled: 5분마다 (every 5 minutes)
    - /queue: 15분마다 (every 15 minutes)
"""

import hmac
from typing import Annotated

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.schemas.common import CronRunResponse
from app.services.scheduler_service import PublishRun, scheduler_service
from app.utils.exceptions import UnauthorizedError
from app.utils.timeutils import utc_now

router: APIRouter = APIRouter()


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """CRON_SECRET이 비어 있으면 검사 생략."""
    if not settings.CRON_SECRET:
        return
    expected: str = f"Bearer {settings.CRON_SECRET}"
    if authorization is None or not hmac.compare_digest(authorization, expected):
        raise UnauthorizedError("Unauthorized")


def _to_response(run: PublishRun) -> CronRunResponse:
    return CronRunResponse(
        success=True,
        published=run.published,
        users_processed=run.users_processed,
        errors=run.errors or None,
        timestamp=utc_now(),
    )


@router.api_route("/scheduled", methods=["GET", "POST"], response_model=CronRunResponse, response_model_exclude_none=True)
async def publish_scheduled(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[None, Depends(verify_cron_secret)],
) -> CronRunResponse:
    """발행 시각이 지난 예약 게시글을 발행합니다."""
    run: PublishRun = await scheduler_service.publish_scheduled(db)
    await db.commit()
    return _to_response(run)


@router.api_route("/queue", methods=["GET", "POST"], response_model=CronRunResponse, response_model_exclude_none=True)
async def process_queues(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[None, Depends(verify_cron_secret)],
) -> CronRunResponse:
    """사용자별 큐를 발행 윈도우와 하루 목표량에 맞춰 발행합니다."""
    run: PublishRun = await scheduler_service.process_queues(db)
    await db.commit()
    return _to_response(run)
