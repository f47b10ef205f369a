"""커스텀 HTTP 예외 클래스 모듈.

Pre-configured HTTPException subclasses so services can raise domain
errors without repeating status codes.

Usage:
    from app.utils.exceptions import NotFoundError, ForbiddenError
    raise NotFoundError("Post not found")
    raise ForbiddenError("Cannot delete others' comments")
"""

from fastapi import HTTPException, status

from app.utils.rate_limit import RateLimitResult, get_rate_limit_headers


class NotFoundError(HTTPException):
    """404 — 게시글, 프로필, 신고 등 대상이 없을 때."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 — 이미 존재하는 사용자명, 중복 팔로우/신고 등.

    Raised when a uniqueness rule would be violated
    (e.g. taken username, following someone twice).
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 — 역할 레벨 부족 또는 타인 리소스 수정 시도."""

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 — 토큰 누락/만료, 잘못된 자격 증명, 크론 비밀값 불일치."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 — Pydantic 검증 이후의 비즈니스 규칙 위반.

    Business-rule failures that schema validation cannot catch
    (e.g. empty comment after trimming, unsupported upload type).
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class TooManyRequestsError(HTTPException):
    """429 — 레이트 리밋 초과. X-RateLimit-* 헤더를 함께 반환합니다.

    Carries the limiter result so the response includes
    X-RateLimit-Limit/Remaining/Reset headers.
    """

    def __init__(
        self,
        detail: str = "Too many requests. Please try again later.",
        result: RateLimitResult | None = None,
    ) -> None:
        headers: dict[str, str] | None = get_rate_limit_headers(result) if result else None
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail, headers=headers)


class ServiceUnavailableError(HTTPException):
    """503 — 외부 서비스(스토리지 등)가 설정되지 않았을 때."""

    def __init__(self, detail: str = "Service is not configured") -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
