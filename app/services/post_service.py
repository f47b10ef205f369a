"""게시글 서비스 — 작성, 수정, 삭제, 조회 비즈니스 로직.

Post Service — Create/update/delete/read for posts.

Create flow:
    1. 제한/정지 계정 거부 (Restricted or banned authors are rejected)
    2. 링크 게시글이 지원 영상이면 임베드 정보 저장 (Video links get an embed)
    3. 미디어 URL 검수 게이트 — 실패 시 통과 (Moderation gate, fail open)
    4. 발행 모드에 따라 상태 결정 (now | queue | schedule | draft)
    5. 태그 정규화/저장, 멘션 처리, 신뢰 사용자 승격
       (Tags, mentions and trusted-user promotion for published posts)
"""

import logging
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.models.profile import Profile
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.post import FeedResponse, PostCreate, PostResponse, PostUpdate, ProfilePostsResponse
from app.services.mention_service import mention_service
from app.services.moderation_service import moderation_service
from app.services.post_stats_service import hydrate_posts
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.moderation_client import ModerationResult
from app.utils.roles import TRUSTED_USER, TRUSTED_USER_POST_THRESHOLD, USER
from app.utils.timeutils import as_utc, utc_now
from app.utils.video_embeds import ParsedVideoEmbed, parse_video_url

logger = logging.getLogger(__name__)

# 발행 모드 → 게시글 상태 (Publish mode to post status)
_MODE_STATUS: dict[str, str] = {
    "now": "published",
    "queue": "queued",
    "schedule": "scheduled",
    "draft": "draft",
}


def normalize_tags(tags: Sequence[str] | None) -> list[str]:
    """태그 정규화 — 소문자, 공백 제거, 앞의 '#' 제거, 빈 값/중복 제외."""
    result: list[str] = []
    for raw in tags or []:
        name: str = raw.strip().lstrip("#").strip().lower()
        if name and name not in result:
            result.append(name[:100])
    return result


def media_for_moderation(post_type: str, content: dict[str, Any]) -> tuple[list[str], list[str]]:
    """검수 대상 미디어 URL과 유형 — (urls, media_types)."""
    urls: list[str] = []
    types: list[str] = []
    if post_type in ("image", "gallery"):
        for url in content.get("urls") or []:
            urls.append(url)
            types.append("image")
    elif post_type == "video" and not content.get("embed"):
        if content.get("url"):
            urls.append(content["url"])
            types.append("video")
        if content.get("thumbnail_url"):
            urls.append(content["thumbnail_url"])
            types.append("image")
    return urls, types


def mention_source(content: dict[str, Any]) -> str:
    """멘션을 찾을 텍스트 — 본문 html과 캡션을 합칩니다."""
    parts: list[str] = [
        content[key] for key in ("html", "caption_html") if isinstance(content.get(key), str)
    ]
    return " ".join(parts)


class PostService:
    """게시글 서비스."""

    async def _get_owned(self, db: AsyncSession, user: Profile, post_id: UUID) -> Post:
        post: Post | None = await post_repository.get_by_id(db, post_id)
        if post is None or post.status == "deleted":
            raise NotFoundError("Post not found")
        if post.author_id != user.id:
            raise ForbiddenError("You can only modify your own posts")
        return post

    async def create_post(self, db: AsyncSession, author: Profile, data: PostCreate) -> PostResponse:
        """새 게시글을 작성합니다.

        Args:
            author: 작성자 (Must not be restricted or banned)
            data: 작성 요청 (Validated content per post type)

        Returns:
            PostResponse: 생성된 게시글 (with stats and tags)

        Raises:
            ForbiddenError: 작성 제한 계정 (Restricted account)
            BadRequestError: 과거 예약 시각 (Scheduled time in the past)
        """
        if not author.can_post:
            raise ForbiddenError("Your account is restricted from posting")

        now: datetime = utc_now()
        scheduled_for: datetime | None = None
        if data.publish_mode == "schedule":
            scheduled_for = as_utc(data.scheduled_for)
            if scheduled_for is None or scheduled_for <= now:
                raise BadRequestError("Scheduled time must be in the future")

        content: dict[str, Any] = dict(data.content)
        if data.post_type in ("link", "video") and isinstance(content.get("url"), str):
            embed: ParsedVideoEmbed | None = parse_video_url(content["url"])
            if embed is not None:
                content["embed"] = embed.to_dict()
                content.setdefault("thumbnail_url", embed.thumbnail_url)

        is_sensitive: bool = data.is_sensitive
        urls, types = media_for_moderation(data.post_type, content)
        moderation: ModerationResult | None = None
        if urls:
            moderation = await moderation_service.check_content_moderation(urls, types)
            if moderation.suggest_sensitive:
                is_sensitive = True

        status: str = _MODE_STATUS[data.publish_mode]
        post_data: dict[str, Any] = {
            "author_id": author.id,
            "post_type": data.post_type,
            "content": content,
            "is_sensitive": is_sensitive,
            "status": status,
            "scheduled_for": scheduled_for,
            "published_at": now if status == "published" else None,
        }
        if status == "queued":
            post_data["queue_position"] = await post_repository.next_queue_position(db, author.id)

        post: Post = await post_repository.create(db, post_data)
        tags: list[str] = normalize_tags(data.tags)
        if tags:
            await post_repository.set_post_tags(db, post.id, tags)

        if moderation is not None and moderation.flagged:
            await moderation_service.auto_flag_post(db, post, moderation.reason)

        if status == "published":
            await mention_service.process_mentions(db, mention_source(content), author.id, post.id)
            await self.maybe_promote_trusted(db, author)

        return (await hydrate_posts(db, [post], author.id))[0]

    async def maybe_promote_trusted(self, db: AsyncSession, author: Profile) -> bool:
        """발행 게시글 수가 기준에 도달한 일반 사용자를 TRUSTED_USER로 승격."""
        if author.role != USER:
            return False
        published: int = await post_repository.count_published_by_author(db, author.id)
        if published < TRUSTED_USER_POST_THRESHOLD:
            return False
        author.role = TRUSTED_USER
        await db.flush()
        logger.info("Promoted %s to trusted user after %d posts", author.username, published)
        return True

    async def update_post(
        self, db: AsyncSession, user: Profile, post_id: UUID, data: PostUpdate
    ) -> PostResponse:
        """본인 게시글 수정 — tags를 주면 전체 교체."""
        post: Post = await self._get_owned(db, user, post_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"tags"})
        if update_data.get("content") is None:
            update_data.pop("content", None)
        if update_data.get("is_sensitive") is None:
            update_data.pop("is_sensitive", None)
        if update_data:
            post = await post_repository.update(db, post, update_data)
        if data.tags is not None:
            await post_repository.set_post_tags(db, post.id, normalize_tags(data.tags))
        return (await hydrate_posts(db, [post], user.id))[0]

    async def delete_post(self, db: AsyncSession, user: Profile, post_id: UUID) -> None:
        """본인 게시글 삭제 — 상태만 deleted로 바꾸는 소프트 삭제."""
        post: Post = await self._get_owned(db, user, post_id)
        post.status = "deleted"
        post.is_pinned = False
        post.queue_position = None
        await db.flush()

    async def get_post(self, db: AsyncSession, post_id: UUID, viewer: Profile | None) -> PostResponse:
        post: Post | None = await post_repository.get_visible(db, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return (await hydrate_posts(db, [post], viewer.id if viewer else None))[0]

    async def _get_profile(self, db: AsyncSession, username: str) -> Profile:
        profile: Profile | None = await profile_repository.get_by_username(db, username)
        if profile is None or profile.is_banned:
            raise NotFoundError("User not found")
        return profile

    async def get_user_posts(
        self,
        db: AsyncSession,
        username: str,
        viewer: Profile | None,
        limit: int = 20,
        offset: int = 0,
        include_pinned: bool = False,
    ) -> ProfilePostsResponse:
        """사용자 게시글 — 고정 게시글 우선.

        With ``include_pinned`` the pinned post is returned separately (first
        page only) and left out of the list.
        """
        profile: Profile = await self._get_profile(db, username)
        viewer_id: UUID | None = viewer.id if viewer else None

        pinned: PostResponse | None = None
        if include_pinned and offset == 0:
            pinned_post: Post | None = await post_repository.get_pinned(db, profile.id)
            if pinned_post is not None:
                pinned = (await hydrate_posts(db, [pinned_post], viewer_id))[0]

        posts: Sequence[Post] = await post_repository.list_by_author(
            db, profile.id, limit, offset, exclude_pinned=include_pinned
        )
        return ProfilePostsResponse(
            pinned=pinned,
            posts=await hydrate_posts(db, posts, viewer_id),
            has_more=len(posts) == limit,
        )

    async def get_liked_posts(
        self, db: AsyncSession, username: str, viewer: Profile | None, limit: int = 20, offset: int = 0
    ) -> FeedResponse:
        """사용자가 좋아요한 게시글 — show_likes가 꺼져 있으면 본인만 열람."""
        profile: Profile = await self._get_profile(db, username)
        if not profile.show_likes and (viewer is None or viewer.id != profile.id):
            raise ForbiddenError("This user's likes are private")
        posts: Sequence[Post] = await post_repository.list_liked_by(db, profile.id, limit, offset)
        return FeedResponse(
            posts=await hydrate_posts(db, posts, viewer.id if viewer else None),
            has_more=len(posts) == limit,
        )

    async def get_commented_posts(
        self, db: AsyncSession, username: str, viewer: Profile | None, limit: int = 20, offset: int = 0
    ) -> FeedResponse:
        """사용자가 댓글을 단 게시글 — show_comments가 꺼져 있으면 본인만 열람."""
        profile: Profile = await self._get_profile(db, username)
        if not profile.show_comments and (viewer is None or viewer.id != profile.id):
            raise ForbiddenError("This user's comments are private")
        posts: Sequence[Post] = await post_repository.list_commented_by(db, profile.id, limit, offset)
        return FeedResponse(
            posts=await hydrate_posts(db, posts, viewer.id if viewer else None),
            has_more=len(posts) == limit,
        )


post_service: PostService = PostService()
