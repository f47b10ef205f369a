"""팔로우/차단 레포지토리.

Follow and block repositories — the social graph queries used by the feed,
profile stats and interaction guards.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Block, Follow
from app.models.profile import Profile
from app.repositories.base import BaseRepository


class FollowRepository(BaseRepository[Follow]):
    def __init__(self) -> None:
        super().__init__(Follow)

    async def get(self, db: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow | None:
        result = await db.execute(
            select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        )
        return result.scalar_one_or_none()

    async def remove_pair(self, db: AsyncSession, a: UUID, b: UUID) -> None:
        """양방향 팔로우 삭제 — Remove follows in both directions."""
        await db.execute(
            delete(Follow).where(
                or_(
                    and_(Follow.follower_id == a, Follow.following_id == b),
                    and_(Follow.follower_id == b, Follow.following_id == a),
                )
            )
        )
        await db.flush()

    async def get_following_ids(self, db: AsyncSession, user_id: UUID) -> list[UUID]:
        result = await db.execute(select(Follow.following_id).where(Follow.follower_id == user_id))
        return list(result.scalars().all())

    async def following_among(self, db: AsyncSession, user_id: UUID, target_ids: Sequence[UUID]) -> set[UUID]:
        """target_ids 중 user가 팔로우 중인 ID — Batch follow status."""
        if not target_ids:
            return set()
        result = await db.execute(
            select(Follow.following_id).where(
                Follow.follower_id == user_id, Follow.following_id.in_(list(target_ids))
            )
        )
        return set(result.scalars().all())

    async def list_followers(
        self, db: AsyncSession, user_id: UUID, page: int = 1, per_page: int = 20
    ) -> tuple[Sequence[Profile], int]:
        query: Select = (
            select(Profile)
            .join(Follow, Follow.follower_id == Profile.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
        )
        return await self.get_paginated(db, query, page, per_page)

    async def list_following(
        self, db: AsyncSession, user_id: UUID, page: int = 1, per_page: int = 20
    ) -> tuple[Sequence[Profile], int]:
        query: Select = (
            select(Profile)
            .join(Follow, Follow.following_id == Profile.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
        )
        return await self.get_paginated(db, query, page, per_page)

    async def count_followers(self, db: AsyncSession, user_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
        return (await db.execute(query)).scalar() or 0

    async def count_following(self, db: AsyncSession, user_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        return (await db.execute(query)).scalar() or 0


class BlockRepository(BaseRepository[Block]):
    def __init__(self) -> None:
        super().__init__(Block)

    async def get(self, db: AsyncSession, blocker_id: UUID, blocked_id: UUID) -> Block | None:
        result = await db.execute(
            select(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
        )
        return result.scalar_one_or_none()

    async def is_blocked_either_way(self, db: AsyncSession, a: UUID, b: UUID) -> bool:
        query: Select = select(func.count()).select_from(Block).where(
            or_(
                and_(Block.blocker_id == a, Block.blocked_id == b),
                and_(Block.blocker_id == b, Block.blocked_id == a),
            )
        )
        return ((await db.execute(query)).scalar() or 0) > 0

    async def get_related_ids(self, db: AsyncSession, user_id: UUID) -> set[UUID]:
        """user가 차단했거나 user를 차단한 프로필 ID — Blocks in either direction."""
        blocked = await db.execute(select(Block.blocked_id).where(Block.blocker_id == user_id))
        blockers = await db.execute(select(Block.blocker_id).where(Block.blocked_id == user_id))
        return set(blocked.scalars().all()) | set(blockers.scalars().all())

    async def list_blocked(self, db: AsyncSession, user_id: UUID) -> Sequence[Profile]:
        result = await db.execute(
            select(Profile)
            .join(Block, Block.blocked_id == Profile.id)
            .where(Block.blocker_id == user_id)
            .order_by(Block.created_at.desc())
        )
        return result.scalars().all()


follow_repository: FollowRepository = FollowRepository()
block_repository: BlockRepository = BlockRepository()
