"""앱 API 라우터 패키지 — 사용자용 엔드포인트 통합.

App API Router package — Aggregates all user-facing endpoints into a single
router mounted at /api/v1/app.

Included routers:
    - auth: 회원가입/로그인/토큰 (Registration, login, tokens)
    - profiles: 공개 프로필과 내 설정 (Public profiles and my settings)
    - posts: 게시글 CRUD (Posts)
    - interactions: 좋아요/댓글/리블로그 (Likes, comments, reblogs)
    - feed: 홈/태그 피드 (Home and tag feeds)
    - queue: 내 발행 큐 (My posting queue)
    - follows: 팔로우/차단 (Follows and blocks)
    - notifications: 내 알림 (My notifications)
    - reports: 사용자 신고 (User reports)
    - media: 업로드/검수/음악/GIF (Uploads, moderation, music, GIFs)
"""

from fastapi import APIRouter

from app.api.app.auth import router as auth_router
from app.api.app.feed import router as feed_router
from app.api.app.follows import router as follows_router
from app.api.app.interactions import router as interactions_router
from app.api.app.media import router as media_router
from app.api.app.notifications import router as notifications_router
from app.api.app.posts import router as posts_router
from app.api.app.profiles import router as profiles_router
from app.api.app.queue import router as queue_router
from app.api.app.reports import router as reports_router

app_router: APIRouter = APIRouter()

app_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
# 프로필: /profiles/{username}/..., /me/... 및 /posts/{id}/pin
app_router.include_router(profiles_router, tags=["Profiles"])
app_router.include_router(posts_router, prefix="/posts", tags=["Posts"])
# 상호작용: /posts/{id}/like|comments|reblog, /comments/{id}
app_router.include_router(interactions_router, tags=["Interactions"])
app_router.include_router(feed_router, prefix="/feed", tags=["Feed"])
app_router.include_router(queue_router, prefix="/queue", tags=["Queue"])
app_router.include_router(follows_router, tags=["Follows"])
app_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
app_router.include_router(reports_router, prefix="/reports", tags=["Reports"])
app_router.include_router(media_router, prefix="/media", tags=["Media"])
