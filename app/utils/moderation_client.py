"""콘텐츠 검수 API 클라이언트 (SightEngine 호환).

Content moderation API client for a SightEngine-style service.

Policy:
    - 아동 안전 not_safe: 항상 차단 (Child safety concerns are always flagged)
    - gore > 0.85: 차단 (Extreme gore is flagged)
    - 노출/성적 콘텐츠, gore > 0.5: 허용하되 민감 표시 제안
      (Nudity or moderate gore is allowed but marked sensitive)
    - 무기: 허용 (Weapons are allowed)

Every HTTP or API error fails open: the result is ``safe=True``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

EXTREME_GORE_THRESHOLD: float = 0.85
SENSITIVE_THRESHOLD: float = 0.5
VERY_SUGGESTIVE_THRESHOLD: float = 0.7

VIDEO_MAX_POLLS: int = 10
VIDEO_POLL_INTERVAL: float = 3.0


@dataclass
class ModerationResult:
    safe: bool
    flagged: bool
    confidence: float = 0.0
    suggest_sensitive: bool = False
    reason: str | None = None
    sensitive_reason: str | None = None


def _fail_open(reason: str) -> ModerationResult:
    return ModerationResult(safe=True, flagged=False, reason=reason)


def _error_message(error: Any) -> str:
    """API 오류 필드는 객체 또는 문자열 — error is either an object or a bare string."""
    if isinstance(error, dict):
        return str(error.get("message") or "API error")
    return str(error) or "API error"


def _nudity_reasons(nudity: dict[str, Any] | None) -> list[str]:
    if not nudity:
        return []
    reasons: list[str] = []
    for key in ("sexual_activity", "sexual_display", "erotica"):
        if (nudity.get(key) or 0) > SENSITIVE_THRESHOLD:
            reasons.append(key)
    if (nudity.get("very_suggestive") or 0) > VERY_SUGGESTIVE_THRESHOLD:
        reasons.append("suggestive")
    return reasons


def analyze_image_response(data: dict[str, Any]) -> ModerationResult:
    """이미지 검수 응답을 정책에 따라 판정합니다."""
    if (data.get("child") or {}).get("context") == "not_safe":
        return ModerationResult(
            safe=False,
            flagged=True,
            confidence=1.0,
            suggest_sensitive=True,
            reason="Potential minor safety concern detected",
            sensitive_reason="child_safety",
        )

    gore: float = (data.get("gore") or {}).get("prob") or 0.0
    if gore > EXTREME_GORE_THRESHOLD:
        return ModerationResult(
            safe=False,
            flagged=True,
            confidence=gore,
            suggest_sensitive=True,
            reason="Extreme graphic content detected",
            sensitive_reason="extreme_gore",
        )

    reasons: list[str] = _nudity_reasons(data.get("nudity"))
    if gore > SENSITIVE_THRESHOLD:
        reasons.append("gore")
    return ModerationResult(
        safe=True,
        flagged=False,
        confidence=1.0,
        suggest_sensitive=bool(reasons),
        sensitive_reason=", ".join(reasons) or None,
    )


def analyze_video_response(data: dict[str, Any]) -> ModerationResult:
    """영상 프레임별 결과를 합산해 판정합니다 — 아동 안전 모델은 영상에 없음."""
    frames: list[dict[str, Any]] = (data.get("data") or {}).get("frames") or []
    max_gore: float = 0.0
    reasons: list[str] = []

    for frame in frames:
        gore: float = (frame.get("gore") or {}).get("prob") or 0.0
        max_gore = max(max_gore, gore)
        found: list[str] = _nudity_reasons(frame.get("nudity"))
        if gore > SENSITIVE_THRESHOLD:
            found.append("gore")
        for reason in found:
            if reason not in reasons:
                reasons.append(reason)

    if max_gore > EXTREME_GORE_THRESHOLD:
        return ModerationResult(
            safe=False,
            flagged=True,
            confidence=max_gore,
            suggest_sensitive=True,
            reason="Extreme graphic content detected in video",
            sensitive_reason="extreme_gore",
        )
    return ModerationResult(
        safe=True,
        flagged=False,
        confidence=1.0,
        suggest_sensitive=bool(reasons),
        sensitive_reason=", ".join(reasons) or None,
    )


class ModerationClient:
    """검수 API 비동기 클라이언트.

    Args:
        api_user / api_secret: API 자격 증명 (API credentials)
        base_url: API 기본 URL
        transport: httpx 전송 계층 — 테스트에서 MockTransport 주입
        poll_interval: 영상 결과 폴링 간격(초) (Seconds between video polls)
    """

    def __init__(
        self,
        api_user: str,
        api_secret: str,
        base_url: str = "https://api.sightengine.com/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float = VIDEO_POLL_INTERVAL,
        max_polls: int = VIDEO_MAX_POLLS,
    ) -> None:
        self.api_user = api_user
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=30.0)

    def _auth(self) -> dict[str, str]:
        return {"api_user": self.api_user, "api_secret": self.api_secret}

    async def check_image_url(self, image_url: str) -> ModerationResult:
        params: dict[str, str] = {"url": image_url, "models": "nudity-2.1,gore,child", **self._auth()}
        try:
            async with self._client() as client:
                response: httpx.Response = await client.get("/check.json", params=params)
            if response.status_code != 200:
                logger.error("Moderation API error: status=%s", response.status_code)
                return _fail_open("API error")
            data: Any = response.json()
            if not isinstance(data, dict):
                logger.error("Moderation API returned a non-object body: %r", data)
                return _fail_open("Malformed API response")
            if data.get("error"):
                logger.error("Moderation API returned error: %s", data["error"])
                return _fail_open(_error_message(data["error"]))
            return analyze_image_response(data)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Moderation image check failed: %s", exc)
            return _fail_open("Check failed")
        except (AttributeError, TypeError) as exc:
            logger.error("Moderation image response malformed: %s", exc)
            return _fail_open("Malformed API response")

    async def check_video_url(self, video_url: str) -> ModerationResult:
        params: dict[str, str] = {"stream_url": video_url, "models": "nudity-2.1,gore", **self._auth()}
        try:
            async with self._client() as client:
                response: httpx.Response = await client.get("/video/check.json", params=params)
            if response.status_code != 200:
                logger.error("Moderation video API error: status=%s", response.status_code)
                return _fail_open("Video API error")
            data: Any = response.json()
            if not isinstance(data, dict):
                logger.error("Moderation video API returned a non-object body: %r", data)
                return _fail_open("Malformed API response")
            media: Any = data.get("media")
            media_id: Any = media.get("id") if isinstance(media, dict) else None
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Moderation video check failed: %s", exc)
            return _fail_open("Video check failed")

        if data.get("status") == "success" and isinstance(media_id, str) and media_id:
            return await self._poll_video(media_id)
        return _fail_open("Video check initiated")

    async def _poll_video(self, media_id: str) -> ModerationResult:
        """영상 검수 결과 폴링 — 시간 초과 시 통과 처리."""
        params: dict[str, str] = {"media_id": media_id, **self._auth()}
        async with self._client() as client:
            for _ in range(self.max_polls):
                await asyncio.sleep(self.poll_interval)
                try:
                    response: httpx.Response = await client.get("/video/check-status.json", params=params)
                    data: Any = response.json()
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("Moderation video poll error: %s", exc)
                    continue
                if not isinstance(data, dict):
                    logger.warning("Moderation video poll returned a non-object body: %r", data)
                    continue
                if data.get("status") == "finished":
                    try:
                        return analyze_video_response(data)
                    except (AttributeError, TypeError) as exc:
                        logger.error("Moderation video result malformed: %s", exc)
                        return _fail_open("Malformed API response")
                if data.get("status") == "error":
                    return _fail_open("Video processing error")
        return _fail_open("Video processing timeout")


_client: ModerationClient | None = None


def get_moderation_client() -> ModerationClient | None:
    """설정된 경우에만 클라이언트 반환 (lazy init) — 미설정 시 None."""
    global _client
    if _client is None and settings.MODERATION_API_USER and settings.MODERATION_API_SECRET:
        _client = ModerationClient(
            settings.MODERATION_API_USER,
            settings.MODERATION_API_SECRET,
            settings.MODERATION_API_URL,
        )
    return _client


def set_moderation_client(client: ModerationClient | None) -> None:
    """클라이언트 교체 — 테스트에서 MockTransport 클라이언트 주입용."""
    global _client
    _client = client


async def moderate_content(url: str, media_type: str) -> ModerationResult:
    """URL 하나를 검수합니다 — 미설정이면 안전으로 통과."""
    client: ModerationClient | None = get_moderation_client()
    if client is None:
        return _fail_open("Moderation not configured")
    if media_type == "video":
        return await client.check_video_url(url)
    return await client.check_image_url(url)
