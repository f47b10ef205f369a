"""팔로우/차단 서비스.

Follow Service — Follow graph and blocks. A block in either direction
prevents following; creating a block removes follows both ways.
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Block, Follow
from app.models.profile import Profile
from app.repositories.follow_repository import block_repository, follow_repository
from app.repositories.notification_repository import notification_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.interaction import FollowListResponse
from app.schemas.profile import ProfileSummary
from app.services.email_service import email_service
from app.services.notification_service import notification_service, to_summary
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class FollowService:
    """팔로우 서비스."""

    async def _get_target(self, db: AsyncSession, user_id: UUID) -> Profile:
        target: Profile | None = await profile_repository.get_by_id(db, user_id)
        if target is None or target.is_banned:
            raise NotFoundError("User not found")
        return target

    async def follow(self, db: AsyncSession, user: Profile, target_id: UUID) -> None:
        """팔로우 — 알림과 이메일(수신 설정 확인)을 보냅니다.

        Raises:
            BadRequestError: 자기 자신 팔로우 (Self-follow)
            DuplicateError: 이미 팔로우 중 (Already following)
            ForbiddenError: 차단 관계 존재 (A block exists either way)
        """
        if target_id == user.id:
            raise BadRequestError("Cannot follow yourself")
        target: Profile = await self._get_target(db, target_id)
        if await follow_repository.get(db, user.id, target.id) is not None:
            raise DuplicateError("Already following")
        if await block_repository.is_blocked_either_way(db, user.id, target.id):
            raise ForbiddenError("Unable to follow this user")

        await follow_repository.create(db, {"follower_id": user.id, "following_id": target.id})
        await notification_service.notify(db, target.id, "follow", user.id)
        await email_service.send_follow(target, user)

    async def unfollow(self, db: AsyncSession, user: Profile, target_id: UUID) -> None:
        follow: Follow | None = await follow_repository.get(db, user.id, target_id)
        if follow is None:
            raise NotFoundError("Not following this user")
        await db.delete(follow)
        await db.flush()
        await notification_repository.delete_matching(db, "follow", user.id, recipient_id=target_id)

    async def is_following(self, db: AsyncSession, user: Profile, target_id: UUID) -> bool:
        return await follow_repository.get(db, user.id, target_id) is not None

    async def get_batch_follow_status(
        self, db: AsyncSession, user: Profile, target_ids: Sequence[UUID]
    ) -> dict[str, bool]:
        """여러 사용자에 대한 팔로우 여부 — {user_id: bool}."""
        following: set[UUID] = await follow_repository.following_among(db, user.id, target_ids)
        return {str(target_id): target_id in following for target_id in target_ids}

    async def _list(
        self,
        db: AsyncSession,
        username: str,
        viewer: Profile | None,
        kind: str,
        page: int,
        per_page: int,
    ) -> FollowListResponse:
        profile: Profile | None = await profile_repository.get_by_username(db, username)
        if profile is None or profile.is_banned:
            raise NotFoundError("User not found")
        visible: bool = profile.show_followers if kind == "followers" else profile.show_following
        if not visible and (viewer is None or viewer.id != profile.id):
            raise ForbiddenError(f"This user's {kind} list is private")

        if kind == "followers":
            items, total = await follow_repository.list_followers(db, profile.id, page, per_page)
        else:
            items, total = await follow_repository.list_following(db, profile.id, page, per_page)
        return FollowListResponse(
            items=[to_summary(p) for p in items], total=total, page=page, per_page=per_page
        )

    async def get_followers(
        self, db: AsyncSession, username: str, viewer: Profile | None, page: int = 1, per_page: int = 20
    ) -> FollowListResponse:
        return await self._list(db, username, viewer, "followers", page, per_page)

    async def get_following(
        self, db: AsyncSession, username: str, viewer: Profile | None, page: int = 1, per_page: int = 20
    ) -> FollowListResponse:
        return await self._list(db, username, viewer, "following", page, per_page)

    # --- 차단 (Blocks) ---

    async def block(self, db: AsyncSession, user: Profile, target_id: UUID) -> None:
        """차단 — 양방향 팔로우를 함께 제거합니다."""
        if target_id == user.id:
            raise BadRequestError("Cannot block yourself")
        target: Profile = await self._get_target(db, target_id)
        if await block_repository.get(db, user.id, target.id) is not None:
            raise DuplicateError("User is already blocked")
        await block_repository.create(db, {"blocker_id": user.id, "blocked_id": target.id})
        await follow_repository.remove_pair(db, user.id, target.id)
        logger.info("User %s blocked %s", user.id, target.id)

    async def unblock(self, db: AsyncSession, user: Profile, target_id: UUID) -> None:
        block: Block | None = await block_repository.get(db, user.id, target_id)
        if block is None:
            raise NotFoundError("User is not blocked")
        await db.delete(block)
        await db.flush()

    async def list_blocked(self, db: AsyncSession, user: Profile) -> list[ProfileSummary]:
        blocked: Sequence[Profile] = await block_repository.list_blocked(db, user.id)
        return [to_summary(p) for p in blocked]


follow_service: FollowService = FollowService()
