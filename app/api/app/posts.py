"""게시글 라우터 — 작성, 조회, 수정, 삭제.

Post Router — Create (with publish mode and moderation), read, update and
soft-delete posts.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.post import PostCreate, PostResponse, PostUpdate
from app.services.post_service import post_service

router: APIRouter = APIRouter()


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    data: PostCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PostResponse:
    """게시글 작성 — publish_mode: now | queue | schedule.

    Media URLs are checked by the moderation gate; a flagged post is stored
    with ``moderation_status="flagged"`` and reported automatically.
    """
    result: PostResponse = await post_service.create_post(db, current_user, data)
    await db.commit()
    return result


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
) -> PostResponse:
    return await post_service.get_post(db, post_id, viewer)


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    data: PostUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PostResponse:
    result: PostResponse = await post_service.update_post(db, current_user, post_id, data)
    await db.commit()
    return result


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await post_service.delete_post(db, current_user, post_id)
    await db.commit()
