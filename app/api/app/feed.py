"""피드 라우터 — 홈 피드와 태그 피드.

Feed Router — Home feed and tag feed. Both are readable anonymously.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.database import get_db
from app.models.profile import Profile
from app.schemas.post import FeedResponse
from app.services.feed_service import feed_service

router: APIRouter = APIRouter()


@router.get("", response_model=FeedResponse)
async def get_feed(
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> FeedResponse:
    """홈 피드 — 팔로우 중인 작성자와 본인, 차단 관계 제외."""
    return await feed_service.get_feed(db, viewer, limit, offset)


@router.get("/tags/{tag}", response_model=FeedResponse)
async def get_tag_feed(
    tag: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    viewer: Annotated[Profile | None, Depends(get_optional_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> FeedResponse:
    return await feed_service.get_tag_feed(db, tag, viewer, limit, offset)
