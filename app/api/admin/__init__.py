"""관리자 API 라우터 패키지 — 운영진 엔드포인트 통합.

Admin API Router package — Aggregates staff tooling mounted at /api/v1/admin.

Included routers:
    - reports: 신고 큐 (JUNIOR_MOD+)
    - users: 사용자 제재/역할 (MODERATOR+, ban/role ADMIN)
    - roles: 부여 가능 역할 (ADMIN)
    - audit: 감사 로그 (MODERATOR+)
    - dashboard: 대시보드 통계 (MODERATOR+)
"""

from fastapi import APIRouter

from app.api.admin.audit import router as audit_router
from app.api.admin.dashboard import router as dashboard_router
from app.api.admin.reports import router as reports_router
from app.api.admin.roles import router as roles_router
from app.api.admin.users import router as users_router

admin_router: APIRouter = APIRouter()

admin_router.include_router(reports_router, prefix="/reports", tags=["Admin Reports"])
admin_router.include_router(users_router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(roles_router, prefix="/roles", tags=["Admin Roles"])
admin_router.include_router(audit_router, prefix="/audit-logs", tags=["Audit Logs"])
admin_router.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
