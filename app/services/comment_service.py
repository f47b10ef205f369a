"""댓글 서비스 — 작성, 삭제, 목록, 개수.

Comment Service — Create/delete/list for post comments.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interaction import Comment
from app.models.post import Post
from app.models.profile import Profile
from app.repositories.follow_repository import block_repository
from app.repositories.interaction_repository import comment_repository
from app.repositories.notification_repository import notification_repository
from app.repositories.post_repository import post_repository
from app.repositories.profile_repository import profile_repository
from app.schemas.interaction import MAX_COMMENT_LENGTH, CommentListResponse, CommentResponse
from app.services.email_service import email_service
from app.services.mention_service import mention_service
from app.services.notification_service import notification_service, to_summary
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.validation import content_preview, strip_html


class CommentService:
    """댓글 서비스."""

    async def _get_post(self, db: AsyncSession, post_id: UUID) -> Post:
        post: Post | None = await post_repository.get_visible(db, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def create_comment(
        self, db: AsyncSession, user: Profile, post_id: UUID, content_html: str
    ) -> CommentResponse:
        """댓글을 작성합니다.

        Args:
            content_html: 댓글 HTML — 앞뒤 공백 제거 후 1~2000자

        Raises:
            BadRequestError: 빈 댓글 또는 길이 초과 (Empty or too long)
            ForbiddenError: 작성 제한 계정 또는 차단 관계 (Restricted or blocked)
        """
        content: str = content_html.strip()
        if not content:
            raise BadRequestError("Comment cannot be empty")
        if len(content) > MAX_COMMENT_LENGTH:
            raise BadRequestError(f"Comment must be {MAX_COMMENT_LENGTH} characters or less")
        if not user.can_post:
            raise ForbiddenError("Your account is restricted from commenting")

        post: Post = await self._get_post(db, post_id)
        if await block_repository.is_blocked_either_way(db, user.id, post.author_id):
            raise ForbiddenError("Unable to comment on this post")

        comment: Comment = await comment_repository.create(
            db, {"user_id": user.id, "post_id": post_id, "content_html": content}
        )

        if post.author_id != user.id:
            await notification_service.notify(db, post.author_id, "comment", user.id, post_id, comment.id)
            author: Profile | None = await profile_repository.get_by_id(db, post.author_id)
            if author is not None:
                await email_service.send_comment(
                    author, user, str(post_id), strip_html(content), content_preview(post.content)
                )

        await mention_service.process_mentions(db, content, user.id, post_id)

        return CommentResponse(
            id=str(comment.id),
            post_id=str(post_id),
            content_html=comment.content_html,
            author=to_summary(user),
            is_own=True,
            created_at=comment.created_at,
        )

    async def delete_comment(self, db: AsyncSession, user: Profile, comment_id: UUID) -> None:
        """본인 댓글만 삭제 — 대응 알림도 함께 제거."""
        comment: Comment | None = await comment_repository.get_by_id(db, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.user_id != user.id:
            raise ForbiddenError("You can only delete your own comments")
        await notification_repository.delete_matching(db, "comment", user.id, comment_id=comment.id)
        await db.delete(comment)
        await db.flush()

    async def list_comments(
        self, db: AsyncSession, post_id: UUID, viewer: Profile | None
    ) -> CommentListResponse:
        await self._get_post(db, post_id)
        rows: Sequence[tuple[Comment, Profile]] = await comment_repository.list_for_post(db, post_id)
        comments: list[CommentResponse] = [
            CommentResponse(
                id=str(c.id),
                post_id=str(c.post_id),
                content_html=c.content_html,
                author=to_summary(p),
                is_own=viewer is not None and c.user_id == viewer.id,
                created_at=c.created_at,
            )
            for c, p in rows
        ]
        return CommentListResponse(comments=comments, count=len(comments))

    async def count_comments(self, db: AsyncSession, post_id: UUID) -> int:
        return await comment_repository.count_for_post(db, post_id)


comment_service: CommentService = CommentService()
