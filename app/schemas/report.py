"""신고 및 검수 관련 Pydantic 스키마 정의.

Report, escalation and resolution schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.profile import ProfileSummary

ReportSubject = Literal[
    "spam", "harassment", "hate_speech", "impersonation", "minor_safety",
    "non_consensual", "violence", "self_harm", "other",
]
Resolution = Literal["resolved_ban", "resolved_restrict", "resolved_dismissed"]


class ReportCreate(BaseModel):
    reported_user_id: str
    subject: ReportSubject
    comments: str | None = Field(default=None, max_length=2000)
    post_id: str | None = None


class ReportResponse(BaseModel):
    id: str
    reporter: ProfileSummary | None = None
    reported_user: ProfileSummary | None = None
    post_id: str | None = None
    subject: str
    comments: str | None = None
    source: str
    status: str
    assigned_to: str | None = None
    assigned_role: int
    escalated_at: datetime | None = None
    escalation_reason: str | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    created_at: datetime


class ReportListResponse(BaseModel):
    items: list[ReportResponse]
    total: int
    page: int
    per_page: int


class EscalateRequest(BaseModel):
    target_role: int
    reason: str = Field(min_length=1, max_length=2000)


class ResolveRequest(BaseModel):
    resolution: Resolution
    notes: str | None = Field(default=None, max_length=2000)


class AssignRequest(BaseModel):
    assignee_id: str


class ReportStatsResponse(BaseModel):
    pending: int = 0
    reviewing: int = 0
    escalated: int = 0
    resolved: int = 0
