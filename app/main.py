"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 예외 처리, 라우터 등록.

FastAPI application entry point — Middleware, global error handling,
background tasks and router registration.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.utils.errors import handle_server_error, log_error, sanitize_error_message
from app.utils.rate_limit import run_sweeper

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@contextlib.asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """시작 시 속도 제한 정리 루프 실행, 종료 시 취소."""
    sweeper: asyncio.Task = asyncio.create_task(run_sweeper())
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """동시 요청으로 인한 유니크 제약 위반 — 409로 응답."""
    log_error(f"{request.method} {request.url.path}", exc)
    return JSONResponse(
        status_code=409,
        content={"detail": sanitize_error_message(exc, "Resource already exists")},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """처리되지 않은 예외 — 서버 로그에 전체 기록, 응답은 정제된 메시지."""
    return JSONResponse(
        status_code=500,
        content=handle_server_error(f"{request.method} {request.url.path}", exc),
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from app.api.admin import admin_router  # noqa: E402
from app.api.app import app_router  # noqa: E402
from app.api.cron import router as cron_router  # noqa: E402

app.include_router(app_router, prefix="/api/v1/app")
app.include_router(admin_router, prefix="/api/v1/admin")
app.include_router(cron_router, prefix="/api/v1/cron", tags=["Cron"])
