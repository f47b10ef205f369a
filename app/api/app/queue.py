"""발행 큐 라우터 — 내 큐 조회, 순서 변경, 제거, 즉시 발행.

Queue Router — The current user's posting queue.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, parse_uuids
from app.database import get_db
from app.models.profile import Profile
from app.schemas.notification import UpdatedCountResponse
from app.schemas.post import PostResponse, QueueReorderRequest, QueueResponse
from app.services.reblog_service import reblog_service

router: APIRouter = APIRouter()


@router.get("", response_model=QueueResponse)
async def get_queue(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> QueueResponse:
    return await reblog_service.get_queue(db, current_user)


@router.put("/order", response_model=UpdatedCountResponse)
async def reorder_queue(
    data: QueueReorderRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> UpdatedCountResponse:
    """큐 순서 변경 — 전달된 순서대로 1..n 위치 부여."""
    updated: int = await reblog_service.reorder_queue(db, current_user, parse_uuids(data.post_ids, "post id"))
    await db.commit()
    return UpdatedCountResponse(updated=updated)


@router.delete("/{post_id}", status_code=204)
async def remove_from_queue(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await reblog_service.remove_from_queue(db, current_user, post_id)
    await db.commit()


@router.post("/{post_id}/publish", response_model=PostResponse)
async def publish_now(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PostResponse:
    result: PostResponse = await reblog_service.publish_now(db, current_user, post_id)
    await db.commit()
    return result
