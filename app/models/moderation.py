"""검수(신고, 에스컬레이션, 감사 로그) SQLAlchemy ORM 모델.

Moderation ORM models.

Tables:
    - reports: 사용자 신고 및 자동 검수 플래그 (User reports and auto-moderation flags)
    - escalation_history: 신고 에스컬레이션 이력 (Report escalation trail)
    - audit_logs: 운영진 조치 감사 로그 (Staff action audit trail)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, DateTime, Integer, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.roles import JUNIOR_MOD

# 처리 대기 상태 — Report states that still need staff attention
OPEN_REPORT_STATUSES: tuple[str, ...] = ("pending", "reviewing", "escalated")


class Report(Base):
    """신고 모델.

    Report model. ``reporter_id`` is empty for system reports raised by the
    moderation gate (``source="auto_moderation"``). ``assigned_role`` is the
    minimum role level that may see and claim the report.

    Status: pending | reviewing | escalated | resolved_ban | resolved_restrict | resolved_dismissed
    """

    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reporter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    reported_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    subject: Mapped[str] = mapped_column(String(50), nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String(20), default="user_report", nullable=False)

    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    assigned_role: Mapped[int] = mapped_column(Integer, default=JUNIOR_MOD, nullable=False)

    escalated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    escalated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    escalation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    resolved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_reports_status_role", "status", "assigned_role"),
        Index("ix_reports_reported_user", "reported_user_id"),
    )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_REPORT_STATUSES


class EscalationHistory(Base):
    __tablename__ = "escalation_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    report_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    from_role: Mapped[int] = mapped_column(Integer, nullable=False)
    to_role: Mapped[int] = mapped_column(Integer, nullable=False)
    escalated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class AuditLog(Base):
    """감사 로그 — 운영진 조치 기록.

    Audit log row. Actor name and role are denormalised so the trail stays
    readable after the actor's account changes.

    Actions: ban_user | restrict_user | unlock_user | change_role |
             resolve_report | assign_report | escalate_report |
             remove_post | restore_post | delete_post | ip_ban
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    actor_username: Mapped[str | None] = mapped_column(String(20), nullable=True)
    actor_role: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    target_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    target_user_username: Mapped[str | None] = mapped_column(String(20), nullable=True)
    target_post_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    target_report_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_audit_logs_action_created", "action", "created_at"),
    )
