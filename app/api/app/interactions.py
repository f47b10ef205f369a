"""게시글 상호작용 라우터 — 좋아요, 댓글, 리블로그.

Interaction Router — Likes, comments and reblogs on a post.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.interaction import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    LikersResponse,
    LikeToggleResponse,
)
from app.schemas.post import PostResponse, RebloggersResponse, ReblogRequest
from app.services.comment_service import comment_service
from app.services.like_service import like_service
from app.services.reblog_service import reblog_service

router: APIRouter = APIRouter()


# --- 좋아요 (Likes) ---


@router.post("/posts/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> LikeToggleResponse:
    """좋아요 토글 — 좋아요 시 작성자 알림, 취소 시 알림 삭제."""
    result: LikeToggleResponse = await like_service.toggle_like(db, current_user, post_id)
    await db.commit()
    return result


@router.get("/posts/{post_id}/likes", response_model=LikersResponse)
async def get_likers(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> LikersResponse:
    return await like_service.get_likers(db, post_id, viewer, limit)


# --- 댓글 (Comments) ---


@router.get("/posts/{post_id}/comments", response_model=CommentListResponse)
async def list_comments(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
) -> CommentListResponse:
    return await comment_service.list_comments(db, post_id, viewer)


@router.get("/posts/{post_id}/comments/count")
async def count_comments(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, int]:
    return {"count": await comment_service.count_comments(db, post_id)}


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    post_id: UUID,
    data: CommentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> CommentResponse:
    result: CommentResponse = await comment_service.create_comment(db, current_user, post_id, data.content_html)
    await db.commit()
    return result


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    await comment_service.delete_comment(db, current_user, comment_id)
    await db.commit()


# --- 리블로그 (Reblogs) ---


@router.post("/posts/{post_id}/reblog", response_model=PostResponse, status_code=201)
async def reblog_post(
    post_id: UUID,
    data: ReblogRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PostResponse:
    """리블로그 — mode: instant | standard | queue | schedule."""
    result: PostResponse = await reblog_service.reblog_post(db, current_user, post_id, data)
    await db.commit()
    return result


@router.get("/posts/{post_id}/rebloggers", response_model=RebloggersResponse)
async def get_rebloggers(
    post_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> RebloggersResponse:
    return await reblog_service.get_rebloggers(db, post_id, limit)
