"""Axiom 요청 로깅 미들웨어.

Request logging middleware shipping one structured event per API call to
Axiom: method, route, status, latency, client IP, the authenticated profile
id (from the bearer token's ``sub``) and, for 4xx/5xx, the error detail.
Credentials, tokens and email addresses are masked before leaving the
process. Without AXIOM_API_TOKEN/AXIOM_DATASET the middleware passes
requests straight through.
"""

import json
import logging
import re
import time
from typing import Any

import jwt
from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 키 — Keys masked in bodies and query strings
SENSITIVE_KEYS: re.Pattern[str] = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|credential|email)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Not logged
SKIP_PATHS: frozenset[str] = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

MAX_BODY_CHARS: int = 2000
MAX_ERROR_CHARS: int = 500


def mask_sensitive(data: Any, depth: int = 0) -> Any:
    """민감 필드를 재귀적으로 마스킹합니다. 리스트는 앞 20개만 유지."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if SENSITIVE_KEYS.search(str(key)) else mask_sensitive(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > MAX_BODY_CHARS:
        return data[:MAX_BODY_CHARS] + "...(truncated)"
    return data


def profile_id_from_request(request: Request) -> str | None:
    """Bearer 토큰의 sub — 서명 검증 없이 로그 표시용으로만 사용."""
    header: str = request.headers.get("authorization", "")
    if not header.lower().startswith("bearer "):
        return None
    try:
        claims: dict[str, Any] = jwt.decode(header[7:], options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    sub: Any = claims.get("sub")
    return str(sub) if sub else None


def client_ip(request: Request) -> str | None:
    forwarded: str | None = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def error_detail_from_body(body: bytes) -> str:
    try:
        payload: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:MAX_ERROR_CHARS]
    detail: Any = payload.get("detail", payload) if isinstance(payload, dict) else payload
    return str(detail)[:MAX_ERROR_CHARS]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """API 요청/응답을 Axiom 데이터셋에 기록하는 미들웨어."""

    def __init__(self, app: Any, client: AxiomClient | None = None, dataset: str | None = None) -> None:
        super().__init__(app)
        self._dataset: str = dataset or settings.AXIOM_DATASET
        self._client: AxiomClient | None = client
        if self._client is None and settings.AXIOM_API_TOKEN and self._dataset:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def _read_json_body(self, request: Request) -> Any:
        if request.method not in ("POST", "PUT", "PATCH"):
            return None
        raw: bytes = await request.body()
        if not raw:
            return None
        try:
            return mask_sensitive(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "(non-json body)"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._client is None or request.url.path in SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip(request),
            "user_agent": request.headers.get("user-agent"),
            "profile_id": profile_id_from_request(request),
        }
        if request.query_params:
            event["query_params"] = mask_sensitive(dict(request.query_params))
        body: Any = await self._read_json_body(request)
        if body is not None:
            event["request_body"] = body

        status_code: int = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            if status_code >= 400:
                # 오류 응답 본문을 읽은 뒤 같은 내용으로 다시 감싸서 반환
                chunks: list[bytes] = [
                    chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                    async for chunk in response.body_iterator
                ]
                content: bytes = b"".join(chunks)
                event["error"] = error_detail_from_body(content)
                response = Response(
                    content=content,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._ship(event)
        return response

    def _ship(self, event: dict[str, Any]) -> None:
        """이벤트 전송 — 실패는 경고 로그만 남깁니다."""
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:  # noqa: BLE001
            logger.warning("Axiom ingest failed: %s", exc)
