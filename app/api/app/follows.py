"""팔로우/차단 라우터.

Follow Router — Follow, unfollow, follow status and blocking.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, parse_uuids
from app.database import get_db
from app.models.profile import Profile
from app.schemas.interaction import BatchFollowStatusRequest, FollowStatusResponse
from app.schemas.profile import ProfileSummary
from app.services.follow_service import follow_service

router: APIRouter = APIRouter()


@router.post("/users/{user_id}/follow", status_code=204)
async def follow(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """팔로우 — 본인, 중복, 차단 관계는 거부."""
    await follow_service.follow(db, current_user, user_id)
    await db.commit()


@router.delete("/users/{user_id}/follow", status_code=204)
async def unfollow(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await follow_service.unfollow(db, current_user, user_id)
    await db.commit()


@router.get("/users/{user_id}/follow", response_model=FollowStatusResponse)
async def follow_status(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> FollowStatusResponse:
    return FollowStatusResponse(is_following=await follow_service.is_following(db, current_user, user_id))


@router.post("/follows/status", response_model=dict[str, bool])
async def batch_follow_status(
    data: BatchFollowStatusRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> dict[str, bool]:
    """여러 사용자에 대한 팔로우 여부 — {user_id: bool}."""
    return await follow_service.get_batch_follow_status(db, current_user, parse_uuids(data.user_ids, "user id"))


@router.get("/blocks", response_model=list[ProfileSummary])
async def list_blocked(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[ProfileSummary]:
    return await follow_service.list_blocked(db, current_user)


@router.post("/users/{user_id}/block", status_code=204)
async def block(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """차단 — 양방향 팔로우 관계도 함께 해제."""
    await follow_service.block(db, current_user, user_id)
    await db.commit()


@router.delete("/users/{user_id}/block", status_code=204)
async def unblock(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await follow_service.unblock(db, current_user, user_id)
    await db.commit()
