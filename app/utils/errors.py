"""사용자 노출용 오류 메시지 정제 및 서버 측 오류 로깅.

User-facing error sanitisation and server-side error logging.
In production, messages that leak internals (SQL, file paths, stack
frames, credentials) are replaced by a generic fallback, and only
messages that look deliberately user-facing pass through.
"""

import logging
import re
from typing import Any

from app.config import settings

logger = logging.getLogger("app.errors")

GENERIC_ERROR_MESSAGE: str = "An unexpected error occurred. Please try again."

# 내부 정보 노출 패턴 — Messages matching any of these never reach users
SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in (
        r"postgres",
        r"sql",
        r"supabase",
        r"relation .* does not exist",
        r"column .* does not exist",
        r"violates .* constraint",
        r"duplicate key",
        r"/usr/",
        r"/home/",
        r"/var/",
        r"C:\\",
        r"D:\\",
        r"at\s+\w+\s+\(",
        r"\.js:\d+:\d+",
        r"\.ts:\d+:\d+",
        r"\.py\"?,? line \d+",
        r"Traceback",
        r"ECONNREFUSED",
        r"ETIMEDOUT",
        r"ENOTFOUND",
        r"connection refused",
        r"internal server error",
        r"api[_-]?key",
        r"secret",
        r"password",
        r"token",
    )
)

# 사용자에게 보여도 되는 메시지 패턴 — Allow-list of user-facing phrasings
SAFE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in (
        r"^unauthorized$",
        r"^not found$",
        r"^invalid",
        r"^please",
        r"^you (cannot|can't|must|need)",
        r"^this (is|cannot|can't)",
        r"^failed to",
        r"^unable to",
        r"^too many",
        r"already exists",
        r"not allowed",
        r"permission denied",
    )
)


def _message_of(error: Any) -> str | None:
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    return None


def sanitize_error_message(
    error: Any,
    fallback: str = GENERIC_ERROR_MESSAGE,
    *,
    environment: str | None = None,
) -> str:
    """오류를 사용자에게 보여줄 메시지로 변환합니다.

    Convert an exception or message into something safe to show a user.

    Rules:
        - 문자열/예외가 아니면 fallback (Anything else yields the fallback)
        - development: 원본 메시지 그대로 (Raw message in development)
        - 그 외 모든 환경: 민감 패턴이 있으면 fallback, 허용 패턴이면 원문,
          그 외 fallback (Every other environment is sanitised)

    Args:
        error: 예외 또는 메시지 (Exception instance or message string)
        fallback: 대체 메시지 (Replacement message)
        environment: 실행 환경, 기본값은 settings.ENVIRONMENT
    """
    message: str | None = _message_of(error)
    if message is None:
        return fallback

    env: str = (environment or settings.ENVIRONMENT).lower()
    if env == "development":
        return message or fallback

    if any(pattern.search(message) for pattern in SENSITIVE_PATTERNS):
        return fallback
    if any(pattern.search(message) for pattern in SAFE_PATTERNS):
        return message
    return fallback


def log_error(context: str, error: Any) -> None:
    """서버 로그에만 남기는 전체 오류 — Full error, server side only."""
    if isinstance(error, BaseException):
        logger.error("[%s] %s", context, error, exc_info=error)
    else:
        logger.error("[%s] %r", context, error)


def handle_server_error(
    context: str,
    error: Any,
    fallback: str = GENERIC_ERROR_MESSAGE,
) -> dict[str, Any]:
    """로그를 남기고 {"success": False, "error": ...} 형태로 반환."""
    log_error(context, error)
    return {"success": False, "error": sanitize_error_message(error, fallback)}
