"""공통 Pydantic 응답 스키마.

Shared response schemas.
"""

from datetime import datetime

from pydantic import BaseModel


class CronRunResponse(BaseModel):
    """크론 실행 결과 — errors는 실패 항목이 있을 때만 포함."""

    success: bool
    published: int
    users_processed: int | None = None
    errors: list[str] | None = None
    timestamp: datetime
