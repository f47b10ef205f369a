"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package. Importing from this package registers every
model with the metadata, which Alembic and ``create_all`` rely on.

Modules:
    profile: 사용자 계정 및 프로필 (Accounts and profiles)
    token: 리프레시 토큰 (Refresh tokens)
    post: 게시글, 태그 (Posts, tags)
    interaction: 좋아요, 댓글, 팔로우, 차단 (Likes, comments, follows, blocks)
    notification: 알림 (Notifications)
    moderation: 신고, 에스컬레이션, 감사 로그 (Reports, escalations, audit logs)
"""

from app.models.profile import Profile
from app.models.token import RefreshToken
from app.models.post import Post, Tag, PostTag
from app.models.interaction import Like, Comment, Follow, Block
from app.models.notification import Notification
from app.models.moderation import Report, EscalationHistory, AuditLog

__all__ = [
    "Profile",
    "RefreshToken",
    "Post", "Tag", "PostTag",
    "Like", "Comment", "Follow", "Block",
    "Notification",
    "Report", "EscalationHistory", "AuditLog",
]
