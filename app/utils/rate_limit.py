"""인메모리 고정 윈도우 레이트 리미터.

In-memory fixed-window rate limiter keyed by arbitrary strings
(e.g. ``"report:<user_id>"`` or ``"login:<ip>"``).

The store lives in this process only. Running several API instances means
each instance enforces its own window; a shared store would be needed for a
global limit.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# 만료 항목 정리 주기(초) — Sweep interval for expired windows
SWEEP_INTERVAL_SECONDS: float = 5 * 60


@dataclass(frozen=True)
class RateLimitConfig:
    """윈도우 크기와 허용 요청 수 — Window length (seconds) and allowed calls."""

    limit: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitResult:
    """레이트 리밋 판정 결과.

    Attributes:
        allowed: 이번 호출 허용 여부 (Whether this call is allowed)
        remaining: 윈도우 내 남은 호출 수 (Calls left in the current window)
        reset_in: 윈도우 리셋까지 남은 초 (Seconds until the window resets)
        limit: 윈도우당 최대 호출 수 (Configured limit)
    """

    allowed: bool
    remaining: int
    reset_in: float
    limit: int


@dataclass
class _Window:
    count: int
    reset_at: float


# 용도별 프리셋 — Presets per use case
RATE_LIMITS: dict[str, RateLimitConfig] = {
    "upload": RateLimitConfig(limit=50, window_seconds=60 * 60),
    "report": RateLimitConfig(limit=10, window_seconds=60 * 60),
    "message": RateLimitConfig(limit=100, window_seconds=60),
    "auth_email": RateLimitConfig(limit=5, window_seconds=15 * 60),
    "api": RateLimitConfig(limit=100, window_seconds=60),
    "login": RateLimitConfig(limit=5, window_seconds=15 * 60),
}


class RateLimiter:
    """고정 윈도우 카운터 저장소.

    Fixed-window counter store. A key's window opens on its first call and
    lasts ``window_seconds``; the (limit + 1)-th call inside it is rejected.
    Once the window has elapsed the next call opens a fresh one.

    Args:
        clock: 현재 시각(초)을 반환하는 함수, 테스트에서 교체 가능
               (Monotonic clock; injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock: Callable[[], float] = clock
        self._store: dict[str, _Window] = {}

    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now: float = self._clock()
        window: _Window | None = self._store.get(key)

        if window is None or window.reset_at <= now:
            window = _Window(count=1, reset_at=now + config.window_seconds)
            self._store[key] = window
            return RateLimitResult(
                allowed=True,
                remaining=config.limit - 1,
                reset_in=config.window_seconds,
                limit=config.limit,
            )

        reset_in: float = window.reset_at - now
        if window.count >= config.limit:
            return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in, limit=config.limit)

        window.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=config.limit - window.count,
            reset_in=reset_in,
            limit=config.limit,
        )

    def sweep_expired(self) -> int:
        """만료된 윈도우 삭제 — Drop expired windows, returning how many."""
        now: float = self._clock()
        expired: list[str] = [key for key, window in self._store.items() if window.reset_at <= now]
        for key in expired:
            del self._store[key]
        return len(expired)

    def reset(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


# 프로세스 전역 리미터 — Process-wide limiter instance
rate_limiter: RateLimiter = RateLimiter()


def check_rate_limit(key: str, config: RateLimitConfig | str) -> RateLimitResult:
    """전역 리미터로 키를 검사합니다. config에 프리셋 이름을 넘길 수 있습니다.

    Check ``key`` against the process-wide limiter. ``config`` may be a
    preset name from :data:`RATE_LIMITS`.
    """
    if isinstance(config, str):
        config = RATE_LIMITS[config]
    return rate_limiter.check(key, config)


def create_rate_limiter(config: RateLimitConfig | str) -> Callable[[str], RateLimitResult]:
    """설정이 고정된 검사 함수를 만듭니다 — Bind a config to a checker."""
    def _check(key: str) -> RateLimitResult:
        return check_rate_limit(key, config)
    return _check


def get_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """응답에 붙일 X-RateLimit-* 헤더 — reset 값은 초 단위 올림."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_in)),
    }


async def run_sweeper(limiter: RateLimiter = rate_limiter, interval: float = SWEEP_INTERVAL_SECONDS) -> None:
    """주기적으로 만료 항목을 정리하는 백그라운드 루프.

    Background loop started on application startup; cancelled on shutdown.
    """
    while True:
        await asyncio.sleep(interval)
        removed: int = limiter.sweep_expired()
        if removed:
            logger.debug("rate limiter swept %d expired windows", removed)
