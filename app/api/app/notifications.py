"""알림 라우터 — 내 알림 목록, 읽음 처리, 삭제.

Notification Router — The current user's notifications.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, parse_uuids
from app.database import get_db
from app.models.profile import Profile
from app.schemas.notification import (
    MarkReadRequest,
    NotificationListResponse,
    UnreadCountResponse,
    UpdatedCountResponse,
)
from app.services.notification_service import notification_service

router: APIRouter = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> NotificationListResponse:
    """알림 목록 — 최신순, 읽지 않은 개수 포함."""
    return await notification_service.list_notifications(db, current_user, page, per_page)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await notification_service.get_unread_count(db, current_user))


@router.post("/read", response_model=UpdatedCountResponse)
async def mark_read(
    data: MarkReadRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> UpdatedCountResponse:
    ids: list[UUID] = parse_uuids(data.notification_ids, "notification id")
    updated: int = await notification_service.mark_read(db, current_user, ids)
    await db.commit()
    return UpdatedCountResponse(updated=updated)


@router.post("/read-all", response_model=UpdatedCountResponse)
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> UpdatedCountResponse:
    updated: int = await notification_service.mark_all_read(db, current_user)
    await db.commit()
    return UpdatedCountResponse(updated=updated)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await notification_service.delete_notification(db, current_user, notification_id)
    await db.commit()


@router.delete("", response_model=UpdatedCountResponse)
async def clear_all(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> UpdatedCountResponse:
    """모든 알림 삭제."""
    deleted: int = await notification_service.clear_all(db, current_user)
    await db.commit()
    return UpdatedCountResponse(updated=deleted)
