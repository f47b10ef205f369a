"""관리자 도구 Pydantic 스키마 정의.

Admin user management, role assignment, dashboard and audit log schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AdminUserResponse(BaseModel):
    id: str
    username: str
    email: str
    display_name: str | None = None
    role: int
    role_name: str
    lock_status: str
    banned_at: datetime | None = None
    ban_reason: str | None = None
    report_count: int = 0
    created_at: datetime


class AdminUserListResponse(BaseModel):
    items: list[AdminUserResponse]
    total: int
    page: int
    per_page: int


class BanRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=2000)
    ip_address: str | None = Field(default=None, max_length=64)


class RestrictRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class SetRoleRequest(BaseModel):
    role: int = Field(ge=0)


class RoleOption(BaseModel):
    level: int
    name: str


class AdminStatsResponse(BaseModel):
    total_users: int
    banned_users: int
    restricted_users: int
    published_posts: int
    flagged_posts: int
    pending_reports: int
    escalated_reports: int


class AuditLogResponse(BaseModel):
    id: str
    actor_id: str | None = None
    actor_username: str | None = None
    actor_role: int | None = None
    action: str
    target_user_id: str | None = None
    target_user_username: str | None = None
    target_post_id: str | None = None
    target_report_id: str | None = None
    details: dict[str, Any]
    ip_address: str | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int
    page: int
    per_page: int
